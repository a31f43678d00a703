#!/usr/bin/env python3
"""
Load pages in headless Chromium and fail on console errors or uncaught page errors.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from ..common import split_csv, write_summary
from ..config import ConfigError, load_config
from .session import visit_pages

SETTLE_MS = 500


def collect_console_errors(page: Any, url: str, timeout_ms: int) -> dict[str, Any]:
    errors: list[str] = []
    page.on("console", lambda msg: errors.append(msg.text) if msg.type == "error" else None)
    page.on("pageerror", lambda exc: errors.append(str(exc)))
    page.goto(url, wait_until="load", timeout=timeout_ms)
    page.wait_for_timeout(SETTLE_MS)
    return {"errors": errors}


def failing_pages(run: dict[str, Any]) -> list[dict[str, Any]]:
    return [page for page in run["pages"] if page.get("error") or page.get("errors")]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check pages for browser console errors.")
    parser.add_argument("--root", default=".", help="Project root containing site.config.json")
    parser.add_argument("--base-url", default="", help="Site under test (default: TEST_BASE_URL)")
    parser.add_argument("--paths", default="/", help="Comma-separated paths to load")
    parser.add_argument("--output-dir", default="console-output")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.root)
    except ConfigError as exc:
        print(f"Error: {exc}")
        return 2
    paths = split_csv(args.paths) or ["/"]
    base_url = args.base_url or config.test_base_url

    run = visit_pages(base_url, paths, collect_console_errors, timeout_ms=config.test_timeout_ms)
    failures = failing_pages(run)
    summary_path = write_summary(
        Path(args.output_dir).resolve(),
        {"base_url": base_url, "status": run["status"], "reason": run["reason"], "pages": run["pages"]},
    )

    if run["status"] != "ok":
        print(f"Error: browser check {run['status']}: {run['reason']}")
        return 1
    for page in run["pages"]:
        marker = "FAIL" if page in failures else "OK"
        print(f"{marker} {page['path']}")
        if page.get("error"):
            print(f"  navigation: {page['error']}")
        for message in page.get("errors", []):
            print(f"  {message}")
    print(f"Summary: {summary_path}")
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
