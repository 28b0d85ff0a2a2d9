"""Render the changelog matrix as Slack-flavoured Markdown."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from .aggregate import ChangelogMatrix
from .buckets import BucketTable
from .classify import TIER_ADMIN, TIER_INTERNAL, TIER_USER, TIERS

TIER_LABELS = {
    TIER_USER: ":rocket: _User-facing_",
    TIER_ADMIN: ":nerd_face: _Admin_",
    TIER_INTERNAL: ":house: _Internal_",
}

CellOverrides = Dict[Tuple[str, str], str]


def format_bullets(entries: List[str]) -> str:
    return "\n".join(f"* {entry}" for entry in entries)


def _render_bucket(
    name: str,
    matrix: ChangelogMatrix,
    overrides: Optional[CellOverrides],
) -> str:
    text = f"**{name}**\n\n"
    for tier in TIERS:
        entries = matrix.entries(name, tier)
        if not entries:
            continue
        body = format_bullets(entries)
        if overrides and (name, tier) in overrides:
            body = overrides[(name, tier)]
        text += f"{TIER_LABELS[tier]}\n{body}\n\n"
    return text


def render_report(
    matrix: ChangelogMatrix,
    table: BucketTable,
    *,
    overrides: Optional[CellOverrides] = None,
) -> str:
    """Render buckets in table order, skipping buckets without entries.

    ``overrides`` replaces the bullet body of individual (bucket, tier) cells
    while keeping headings identical.
    """
    sections = [
        _render_bucket(bucket.name, matrix, overrides)
        for bucket in table
        if not matrix.bucket_is_empty(bucket.name)
    ]
    return "\n".join(sections)
