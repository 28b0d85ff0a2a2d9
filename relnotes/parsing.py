"""Conventional-commit header parsing plus flag and PR reference extraction."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Set, Tuple

# conventional-commits-parser's default header pattern rejects multiple scopes,
# so the scope group accepts a comma separated list.
HEADER_RE = re.compile(r"^(\w+)(?:\(([\w$.\-*, ]*)\))?: (.*)$")
FLAG_RE = re.compile(r"\[([^\]]*)\]")
PR_REF_RE = re.compile(r"\(#(\d+)\)|#(\d+)\b")
PR_PAREN_RE = re.compile(r"\(#\d+\)")

FLAG_IGNORE = "ignore"
FLAG_SKIP_CI = "skip ci"
FLAG_INTERNAL = "internal"
FLAG_ADMIN = "admin"
KNOWN_FLAGS = (FLAG_IGNORE, FLAG_SKIP_CI, FLAG_INTERNAL, FLAG_ADMIN)


@dataclass(frozen=True)
class ParsedCommit:
    """A commit header split into type, scopes and display subject."""
    type: str
    scopes: List[str]
    subject: str
    flags: FrozenSet[str] = field(default_factory=frozenset)
    pr_numbers: FrozenSet[int] = field(default_factory=frozenset)


def _header_line(message: str) -> str:
    lines = message.strip().splitlines()
    return lines[0].strip() if lines else ""


def split_scopes(raw: Optional[str]) -> List[str]:
    """Split a comma separated scope group into trimmed, lower-cased scopes."""
    if not raw:
        return []
    return [s.strip().lower() for s in raw.split(",") if s.strip()]


def parse_header(message: str) -> Optional[Tuple[str, List[str], str]]:
    """Parse ``type(scope1, scope2): subject`` from the first line of a message.

    Returns ``None`` when the header is not a conventional commit or carries
    no subject. Plain commit messages are expected and are not an error.
    """
    m = HEADER_RE.match(_header_line(message))
    if not m:
        return None
    commit_type, raw_scopes, subject = m.group(1), m.group(2), m.group(3)
    if not subject.strip():
        return None
    return commit_type, split_scopes(raw_scopes), subject


def extract_pr_numbers(message: str) -> Set[int]:
    """Collect ``(#123)`` and bare ``#123`` references from the whole message."""
    numbers: Set[int] = set()
    for m in PR_REF_RE.finditer(message):
        value = int(m.group(1) or m.group(2))
        if value > 0:
            numbers.add(value)
    return numbers


def strip_pr_references(subject: str) -> str:
    """Remove parenthesized ``(#123)`` references; bare ``#123`` stays visible."""
    return PR_PAREN_RE.sub("", subject).strip()


def extract_flags(subject: str) -> Tuple[str, Set[str]]:
    """Strip every ``[token]`` from the subject and return the cleaned text and tokens."""
    flags: Set[str] = set()
    for m in FLAG_RE.finditer(subject):
        subject = subject.replace(m.group(0), "", 1).strip()
        flags.add(m.group(1).strip())
    return subject.strip(), flags


def parse_commit(message: str) -> Optional[ParsedCommit]:
    """Parse one raw commit message into a ParsedCommit, or None if not conventional."""
    header = parse_header(message)
    if header is None:
        return None
    commit_type, scopes, subject = header
    subject = strip_pr_references(subject)
    subject, flags = extract_flags(subject)
    return ParsedCommit(
        type=commit_type,
        scopes=scopes,
        subject=subject,
        flags=frozenset(flags),
        pr_numbers=frozenset(extract_pr_numbers(message)),
    )
