"""Best-effort rewrite of changelog bullets into prose sentences."""

from __future__ import annotations

import asyncio
import re
from typing import Callable, List, Optional

from .aggregate import ChangelogMatrix
from .buckets import BucketTable
from .llm_client import RewriteError, TextRewriter
from .render import CellOverrides, render_report

STATE_DISABLED = "disabled"
STATE_ENABLED = "enabled"
STATE_FAILED = "failed"

CODE_FENCE_RE = re.compile(r"^\s*```[\w-]*\s*$", re.MULTILINE)
BULLET_PREFIX_RE = re.compile(r"^\s*(?:[*•-]|\d+[.)])\s+")


def clean_bullets(raw: object, expected: Optional[int] = None) -> str:
    """Normalize a model reply into ``* `` bullet lines.

    Raises RewriteError when the reply is not text, holds no bullets, or holds
    a different number of lines than ``expected``.
    """
    if not isinstance(raw, str):
        raise RewriteError("Rewrite reply is not text")
    text = CODE_FENCE_RE.sub("", raw)
    lines: List[str] = []
    for line in text.splitlines():
        line = BULLET_PREFIX_RE.sub("", line).strip()
        if line:
            lines.append(f"* {line}")
    if not lines:
        raise RewriteError("Rewrite reply is empty")
    if expected is not None and len(lines) != expected:
        raise RewriteError(f"Rewrite reply has {len(lines)} lines, expected {expected}")
    return "\n".join(lines)


class NarrativeRewriter:
    """Rewrite every non-empty (bucket, tier) cell, all or nothing.

    The first failure moves the rewriter to the failed state for the rest of
    the run and the partial result is discarded.
    """

    def __init__(
        self,
        rewriter: Optional[TextRewriter],
        *,
        timeout_s: float = 60.0,
        log: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.rewriter = rewriter
        self.timeout_s = timeout_s
        self.log = log
        self.state = STATE_ENABLED if rewriter is not None else STATE_DISABLED

    def _log(self, msg: str) -> None:
        if self.log is not None:
            self.log(msg)

    async def run(self, matrix: ChangelogMatrix, table: BucketTable) -> Optional[str]:
        """Return the rewritten report, or None when disabled or abandoned."""
        if self.state != STATE_ENABLED or self.rewriter is None:
            return None
        overrides: CellOverrides = {}
        for bucket, tier, lines in matrix.non_empty_cells():
            try:
                raw = await asyncio.wait_for(self.rewriter.rewrite(lines), timeout=self.timeout_s)
                overrides[(bucket, tier)] = clean_bullets(raw, expected=len(lines))
            except asyncio.TimeoutError:
                self.state = STATE_FAILED
                self._log(f"[WARN] Narrative rewrite abandoned at {bucket}/{tier}: timed out after {self.timeout_s}s")
                return None
            except Exception as e:
                self.state = STATE_FAILED
                self._log(f"[WARN] Narrative rewrite abandoned at {bucket}/{tier}: {type(e).__name__}: {e}")
                return None
        return render_report(matrix, table, overrides=overrides)
