"""CLI runner: classify commit messages into a release changelog."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .buckets import BucketTableError, load_bucket_table, parse_bucket_table_json
from .changelog import classify
from .config import (
    DEFAULT_BASE_URLS,
    DEFAULT_MODELS,
    PROVIDERS,
    RewriteSettings,
    get_buckets_config,
    get_rewrite_settings,
    load_config,
    resolve_config_path,
)
from .llm_client import build_rewriter


def _read_messages(source: str, fmt: str) -> List[str]:
    """Read commit messages from a file path or ``-`` for stdin."""
    if source == "-":
        text = sys.stdin.read()
    else:
        path = Path(source).expanduser().resolve()
        if not path.exists():
            raise RuntimeError(f'Messages file not found: "{path}"')
        text = path.read_text(encoding="utf-8")
    if fmt == "json":
        try:
            data = json.loads(text)
        except Exception as e:
            raise RuntimeError(f"Messages are not valid JSON: {e}") from e
        if not isinstance(data, list) or not all(isinstance(m, str) for m in data):
            raise RuntimeError("JSON messages must be a list of strings")
        return data
    return [line for line in text.splitlines() if line.strip()]


def _apply_overrides(settings: RewriteSettings, args: argparse.Namespace) -> RewriteSettings:
    """Let CLI flags override the configured rewrite settings."""
    provider = args.provider or settings.provider
    changes = {}
    if provider != settings.provider:
        changes.update(provider=provider, model=DEFAULT_MODELS[provider], base_url=DEFAULT_BASE_URLS[provider])
    if args.model:
        changes["model"] = args.model
    if args.base_url:
        changes["base_url"] = args.base_url
    if args.timeout is not None:
        changes["timeout_s"] = float(args.timeout)
    return replace(settings, **changes)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and write the changelog."""
    ap = argparse.ArgumentParser(description="Classify conventional commits into a release changelog")
    ap.add_argument("--messages", required=True, help='Commit messages file, or "-" for stdin')
    ap.add_argument(
        "--format",
        choices=("lines", "json"),
        default="lines",
        help="lines=one commit subject per line (git log --pretty=%%s), json=list of full messages",
    )
    ap.add_argument("--config", default=None, help="Path to release_notes.yaml")
    ap.add_argument("--scopes", default=None, help='Bucket table as JSON, e.g. {"App": ["app"], "Api": ["api"]}')
    ap.add_argument("--out", default="changelog.txt", help="Changelog file destination")
    ap.add_argument("--pr-numbers-out", default=None, help="Write referenced PR numbers as a JSON list")
    ap.add_argument("--provider", choices=PROVIDERS, default=None, help="Text-generation provider for the rewrite")
    ap.add_argument("--model", default=None, help="Model name for the rewrite")
    ap.add_argument("--base-url", default=None, help="Base URL of the text-generation API")
    ap.add_argument("--timeout", type=float, default=None, help="Rewrite timeout seconds per section")
    ap.add_argument("--no-rewrite", action="store_true", help="Skip the narrative rewrite")
    ap.add_argument("--verbose", action="store_true", help="Log skipped commits and LLM requests")
    ap.add_argument("--log-file", default=None, help="Append log lines to this file")
    args = ap.parse_args(argv)

    log_path = Path(args.log_file).expanduser().resolve() if args.log_file else None

    def _append_log(line: str) -> None:
        if log_path is None:
            return
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")

    def _log(msg: str, *, stderr: bool = False) -> None:
        stream = sys.stderr if stderr else sys.stdout
        print(msg, file=stream)
        _append_log(msg)

    def _diag(msg: str) -> None:
        """Route library diagnostics; warnings always, the rest only when verbose."""
        if msg.startswith("[WARN]"):
            _log(msg, stderr=True)
        elif args.verbose:
            _log(msg)

    _append_log(f"[RUN] start {time.strftime('%Y-%m-%d %H:%M:%S')}")

    try:
        config_path = resolve_config_path(args.config)
        cfg = load_config(config_path) if config_path is not None else {}
        if args.scopes:
            table = parse_bucket_table_json(args.scopes)
        else:
            raw_buckets = get_buckets_config(cfg)
            if raw_buckets is None:
                _log('[ERROR] No bucket table: pass --scopes or set "buckets" in the config', stderr=True)
                return 2
            table = load_bucket_table(raw_buckets)
        settings = _apply_overrides(get_rewrite_settings(cfg), args)
        messages = _read_messages(args.messages, args.format)
    except BucketTableError as e:
        _log(f"[ERROR] Invalid bucket table: {e}", stderr=True)
        return 2
    except RuntimeError as e:
        _log(f"[ERROR] {e}", stderr=True)
        return 2

    rewriter = None
    if not args.no_rewrite:
        rewriter = build_rewriter(settings, log=_diag if args.verbose else None)
        if rewriter is None:
            _diag("[INFO] Narrative rewrite disabled: no credential configured")

    result = asyncio.run(classify(messages, table, rewriter=rewriter, timeout_s=settings.timeout_s, log=_diag))

    out_path = Path(args.out).expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(result.best, encoding="utf-8")
    _log(f"[OK] wrote {out_path}")
    if result.report_narrative is not None:
        _log("[OK] narrative rewrite applied")

    if args.pr_numbers_out:
        pr_path = Path(args.pr_numbers_out).expanduser().resolve()
        pr_path.parent.mkdir(parents=True, exist_ok=True)
        pr_path.write_text(json.dumps(result.pr_numbers) + "\n", encoding="utf-8")
        _log(f"[OK] wrote {pr_path}")
    _log(f"[INFO] pr_numbers={json.dumps(result.pr_numbers)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
