"""Entry points: commit messages in, release changelog out."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from .aggregate import build_changelog
from .buckets import BucketTableInput, load_bucket_table
from .llm_client import TextRewriter
from .narrative import NarrativeRewriter
from .render import render_report


@dataclass(frozen=True)
class ChangelogResult:
    """Deterministic report, optional narrative variant and referenced PR numbers."""
    report: str
    report_narrative: Optional[str] = None
    pr_numbers: List[int] = field(default_factory=list)

    @property
    def best(self) -> str:
        """The narrative report when available, otherwise the deterministic one."""
        return self.report_narrative if self.report_narrative is not None else self.report


def prepare_changelog(
    messages: Sequence[str],
    buckets: BucketTableInput,
    *,
    log: Optional[Callable[[str], None]] = None,
) -> ChangelogResult:
    """Classify commit messages and render the deterministic report."""
    table = load_bucket_table(buckets)
    matrix, pr_numbers = build_changelog(messages, table, log=log)
    return ChangelogResult(report=render_report(matrix, table), pr_numbers=pr_numbers)


async def classify(
    messages: Sequence[str],
    buckets: BucketTableInput,
    *,
    rewriter: Optional[TextRewriter] = None,
    timeout_s: float = 60.0,
    log: Optional[Callable[[str], None]] = None,
) -> ChangelogResult:
    """Classify commit messages and, when a rewriter is given, add the narrative report.

    A failing rewrite never fails the call; ``report_narrative`` is then None.
    """
    table = load_bucket_table(buckets)
    matrix, pr_numbers = build_changelog(messages, table, log=log)
    report = render_report(matrix, table)
    narrative = await NarrativeRewriter(rewriter, timeout_s=timeout_s, log=log).run(matrix, table)
    return ChangelogResult(report=report, report_narrative=narrative, pr_numbers=pr_numbers)
