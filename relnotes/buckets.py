"""Load and validate the ordered scope-to-bucket table."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union


class BucketTableError(RuntimeError):
    """Raised when a bucket table cannot be used for classification."""


@dataclass(frozen=True)
class Bucket:
    """A named product area and the commit scopes that belong to it."""
    name: str
    scopes: Tuple[str, ...]

    def matches(self, scopes: Sequence[str]) -> bool:
        return any(s.lower() in self.scopes for s in scopes)


@dataclass(frozen=True)
class BucketTable:
    """Buckets in declaration order; the first one is the default bucket."""
    buckets: Tuple[Bucket, ...]

    def __iter__(self) -> Iterator[Bucket]:
        return iter(self.buckets)

    def __len__(self) -> int:
        return len(self.buckets)

    @property
    def names(self) -> List[str]:
        return [b.name for b in self.buckets]

    @property
    def default(self) -> Bucket:
        return self.buckets[0]

    def first_match(self, scopes: Sequence[str]) -> Optional[Bucket]:
        """Return the earliest declared bucket that owns any of the scopes."""
        for bucket in self.buckets:
            if bucket.matches(scopes):
                return bucket
        return None


BucketTableInput = Union[BucketTable, Dict[str, Any], List[Any]]


def _require_name(value: object, idx: int) -> str:
    """Ensure a bucket name is a non-empty string."""
    if not isinstance(value, str) or not value.strip():
        raise BucketTableError(f"buckets[{idx}] name is missing or not a string")
    return value.strip()


def _normalize_scopes(value: object, name: str) -> Tuple[str, ...]:
    """Normalize a bucket's scope list to trimmed, lower-cased identifiers."""
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise BucketTableError(f'Bucket "{name}" scopes must be a list of strings')
    out: List[str] = []
    for item in value:
        if not isinstance(item, str):
            raise BucketTableError(f'Bucket "{name}" has a non-string scope: {item!r}')
        scope = item.strip().lower()
        if scope and scope not in out:
            out.append(scope)
    return tuple(out)


def _iter_pairs(raw: Union[Dict[str, Any], List[Any]]) -> Iterator[Tuple[int, object, object]]:
    if isinstance(raw, dict):
        for idx, (name, scopes) in enumerate(raw.items()):
            yield idx, name, scopes
        return
    for idx, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise BucketTableError(f"buckets[{idx}] is not a mapping")
        yield idx, entry.get("name"), entry.get("scopes")


def load_bucket_table(raw: BucketTableInput) -> BucketTable:
    """Validate a bucket table given as a mapping or a list of ``{name, scopes}`` entries.

    Fails fast on an empty table, empty names and duplicate names, since every
    commit needs at least a default bucket to fall back to.
    """
    if isinstance(raw, BucketTable):
        raw = [{"name": b.name, "scopes": list(b.scopes)} for b in raw]
    if not isinstance(raw, (dict, list)):
        raise BucketTableError("Bucket table must be a mapping or a list of buckets")
    buckets: List[Bucket] = []
    seen: set[str] = set()
    for idx, name, scopes in _iter_pairs(raw):
        clean = _require_name(name, idx)
        if clean in seen:
            raise BucketTableError(f'Duplicate bucket name "{clean}"')
        seen.add(clean)
        buckets.append(Bucket(name=clean, scopes=_normalize_scopes(scopes, clean)))
    if not buckets:
        raise BucketTableError("Bucket table is empty")
    return BucketTable(buckets=tuple(buckets))


def parse_bucket_table_json(text: str) -> BucketTable:
    """Parse a JSON bucket table such as ``{"App": ["app"], "Api": ["api"]}``."""
    try:
        raw = json.loads(text)
    except Exception as e:
        raise BucketTableError(f"Bucket table cannot be parsed as JSON: {e}") from e
    return load_bucket_table(raw)
