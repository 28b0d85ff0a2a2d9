"""Collect classified commits into a bucket x tier matrix."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Set, Tuple

from .buckets import BucketTable
from .classify import TIERS, ClassifiedEntry, classify_commit
from .parsing import parse_commit


@dataclass
class ChangelogMatrix:
    """Bucket -> tier -> display lines, seeded in bucket table order."""
    cells: Dict[str, Dict[str, List[str]]] = field(default_factory=dict)

    @classmethod
    def for_table(cls, table: BucketTable) -> "ChangelogMatrix":
        return cls(cells={name: {tier: [] for tier in TIERS} for name in table.names})

    def add(self, entry: ClassifiedEntry) -> None:
        self.cells[entry.bucket][entry.tier].append(entry.text)

    def entries(self, bucket: str, tier: str) -> List[str]:
        return list(self.cells.get(bucket, {}).get(tier, []))

    def bucket_is_empty(self, bucket: str) -> bool:
        return not any(self.cells.get(bucket, {}).values())

    def non_empty_cells(self) -> Iterator[Tuple[str, str, List[str]]]:
        """Yield (bucket, tier, lines) for populated cells in render order."""
        for bucket, tiers in self.cells.items():
            for tier in TIERS:
                lines = tiers.get(tier) or []
                if lines:
                    yield bucket, tier, list(lines)

    def __len__(self) -> int:
        return sum(len(lines) for tiers in self.cells.values() for lines in tiers.values())


def build_changelog(
    messages: Sequence[str],
    table: BucketTable,
    *,
    log: Optional[Callable[[str], None]] = None,
) -> Tuple[ChangelogMatrix, List[int]]:
    """Parse and classify messages in input order.

    Returns the populated matrix and the sorted, unique PR numbers referenced
    by every conventional commit, including ones skipped by flags.
    """
    matrix = ChangelogMatrix.for_table(table)
    pr_numbers: Set[int] = set()
    for message in messages:
        commit = parse_commit(message)
        if commit is None:
            continue
        pr_numbers.update(commit.pr_numbers)
        entry = classify_commit(commit, table, log=log)
        if entry is None:
            continue
        matrix.add(entry)
    return matrix, sorted(pr_numbers)
