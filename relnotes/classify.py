"""Route parsed commits to one (bucket, tier) cell of the changelog."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional

from .buckets import BucketTable
from .parsing import FLAG_ADMIN, FLAG_IGNORE, FLAG_INTERNAL, FLAG_SKIP_CI, ParsedCommit

TIER_USER = "user"
TIER_ADMIN = "admin"
TIER_INTERNAL = "internal"
TIERS = (TIER_USER, TIER_ADMIN, TIER_INTERNAL)

# Commits scoped only to build plumbing never reach users.
INTERNAL_ONLY_SCOPES = {"ci", "infra"}


@dataclass(frozen=True)
class ClassifiedEntry:
    """One changelog line and the cell it belongs to."""
    bucket: str
    tier: str
    text: str


def tier_for_flags(flags: FrozenSet[str]) -> str:
    """Pick the audience tier from flags: internal > admin > user."""
    if FLAG_INTERNAL in flags:
        return TIER_INTERNAL
    if FLAG_ADMIN in flags:
        return TIER_ADMIN
    return TIER_USER


def is_skipped(commit: ParsedCommit) -> bool:
    return FLAG_SKIP_CI in commit.flags or FLAG_IGNORE in commit.flags


def classify_commit(
    commit: ParsedCommit,
    table: BucketTable,
    *,
    log: Optional[Callable[[str], None]] = None,
) -> Optional[ClassifiedEntry]:
    """Assign a commit to exactly one bucket and tier, or return None to drop it."""
    tier = tier_for_flags(commit.flags)
    if is_skipped(commit):
        if log is not None:
            log(f"[SKIP] {commit.type}: {commit.subject or '<empty>'}")
        return None
    if not commit.subject:
        return None

    default = table.default.name
    if len(commit.scopes) == 1 and commit.scopes[0] in INTERNAL_ONLY_SCOPES:
        return ClassifiedEntry(bucket=default, tier=TIER_INTERNAL, text=commit.subject)
    if not commit.scopes:
        return ClassifiedEntry(bucket=default, tier=tier, text=commit.subject)

    bucket = table.first_match(commit.scopes)
    if bucket is None:
        if log is not None:
            log(
                f'[WARN] No bucket matches scopes {", ".join(commit.scopes)}; '
                f'"{commit.subject}" moved to {default}/{TIER_INTERNAL}'
            )
        return ClassifiedEntry(bucket=default, tier=TIER_INTERNAL, text=commit.subject)
    return ClassifiedEntry(bucket=bucket.name, tier=tier, text=commit.subject)
