#!/usr/bin/env python3
"""
Validate a Cloudflare Pages _redirects file.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from ..common import add_issue

SPA_FALLBACK = ("/*", "/index.html", "200")
VALID_STATUSES = {"200", "301", "302", "303", "307", "308", "404"}


def check_redirects(text: str) -> list[dict[str, str]]:
    issues: list[dict[str, str]] = []
    has_fallback = False
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        fields = line.split()
        if len(fields) < 2:
            add_issue(issues, "High", f"Malformed rule on line {number}", f"Expected '<from> <to> [status]': {line}")
            continue
        if len(fields) >= 3 and fields[2] not in VALID_STATUSES:
            add_issue(issues, "High", f"Invalid status on line {number}", f"Unsupported status code {fields[2]!r}")
        if tuple(fields[:3]) == SPA_FALLBACK:
            has_fallback = True
    if not has_fallback:
        add_issue(issues, "Critical", "Missing SPA fallback", "Add '/* /index.html 200' to _redirects.")
    return issues


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check the _redirects file for the SPA fallback rule.")
    parser.add_argument("--file", default="public/_redirects", help="Path to _redirects")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    path = Path(args.file).resolve()
    if not path.exists():
        print(f"Error: _redirects file not found: {path}")
        return 1

    issues = check_redirects(path.read_text(encoding="utf-8"))
    if not issues:
        print(f"OK: {path} contains the SPA fallback rule")
        return 0
    for issue in issues:
        print(f"{issue['priority']}: {issue['title']}: {issue['detail']}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
