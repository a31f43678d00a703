#!/usr/bin/env python3
"""
Heading hierarchy validator with an optional fixer for duplicate H1 tags.
"""

from __future__ import annotations

import argparse
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..common import add_issue, issue_lines, iter_html_files, read_text, rel_posix, write_if_changed, write_summary

HEADING_RE = re.compile(r"<h([1-6])\b[^>]*>(.*?)</h\1>", re.IGNORECASE | re.DOTALL)
TAG_RE = re.compile(r"<[^>]+>")
H1_BLOCK_RE = re.compile(r"<h1\b([^>]*)>(.*?)</h1>", re.IGNORECASE | re.DOTALL)


@dataclass
class Heading:
    level: int
    text: str


def extract_headings(html: str) -> list[Heading]:
    return [
        Heading(int(match.group(1)), " ".join(TAG_RE.sub("", match.group(2)).split()))
        for match in HEADING_RE.finditer(html)
    ]


def validate_headings(headings: list[Heading]) -> list[dict[str, str]]:
    issues: list[dict[str, str]] = []
    if not any(h.level == 1 for h in headings):
        add_issue(issues, "High", "Missing H1", "Page has no H1 heading.")

    seen_h1 = False
    previous = 0
    for index, heading in enumerate(headings, start=1):
        if heading.level == 1:
            if seen_h1:
                add_issue(issues, "High", "Multiple H1 tags", f"Heading {index}: {heading.text!r} should be H2 or lower.")
            seen_h1 = True
        if previous and heading.level > previous + 1:
            add_issue(
                issues,
                "Medium",
                f"Skipped heading level H{previous} to H{heading.level}",
                f"Heading {index}: {heading.text!r}; use H{previous + 1} instead.",
            )
        if heading.level >= 4 and not any(h.level == heading.level - 1 for h in headings[: index - 1]):
            add_issue(
                issues,
                "Low",
                f"Orphaned H{heading.level}",
                f"Heading {index}: {heading.text!r} has no preceding H{heading.level - 1}.",
            )
        previous = heading.level
    return issues


def demote_extra_h1(html: str) -> tuple[str, int]:
    """Turn every H1 after the first into an H2."""
    state = {"seen": False, "count": 0}

    def replace(match: re.Match[str]) -> str:
        if not state["seen"]:
            state["seen"] = True
            return match.group(0)
        state["count"] += 1
        return f"<h2{match.group(1)}>{match.group(2)}</h2>"

    fixed = H1_BLOCK_RE.sub(replace, html)
    return fixed, state["count"]


def audit_site(site_dir: Path, fix: bool = False) -> dict[str, Any]:
    pages: list[dict[str, Any]] = []
    fixed_files: list[str] = []
    for path in iter_html_files(site_dir):
        rel = rel_posix(path, site_dir)
        html = read_text(path)
        if fix:
            updated, demoted = demote_extra_h1(html)
            if demoted and write_if_changed(path, updated):
                fixed_files.append(rel)
                html = updated
        issues = validate_headings(extract_headings(html))
        pages.append({"file": rel, "issues": issues})
    return {"pages": pages, "fixed_files": fixed_files}


def render_report(out_path: Path, site_dir: Path, result: dict[str, Any]) -> None:
    sections = []
    for page in result["pages"]:
        if page["issues"]:
            sections.append(f"### `{page['file']}`\n{issue_lines(page['issues'])}")
    report = f"""# Heading Structure Report

## Source
- `{site_dir}`

## Summary
- Pages scanned: {len(result['pages'])}
- Pages with issues: {len(sections)}
- Files fixed: {len(result['fixed_files'])}

## Issues
{chr(10).join(sections) if sections else "- None"}
"""
    out_path.write_text(report, encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate heading hierarchy (and optionally fix duplicate H1s).")
    parser.add_argument("--site-dir", default="public")
    parser.add_argument("--fix", action="store_true", help="Demote extra H1 tags to H2 in place")
    parser.add_argument("--strict", action="store_true", help="Exit 1 on warnings as well as errors")
    parser.add_argument("--output-dir", default="headings-output")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    site_dir = Path(args.site_dir).resolve()
    if not site_dir.is_dir():
        print(f"Error: site directory not found: {site_dir}")
        return 2

    result = audit_site(site_dir, fix=args.fix)
    out_dir = Path(args.output_dir).resolve()
    out_dir.mkdir(parents=True, exist_ok=True)
    report_path = out_dir / "HEADINGS-REPORT.md"
    render_report(report_path, site_dir, result)
    all_issues = [issue for page in result["pages"] for issue in page["issues"]]
    errors = [i for i in all_issues if i["priority"] == "High"]
    summary_path = write_summary(
        out_dir,
        {
            "site_dir": str(site_dir),
            "pages_scanned": len(result["pages"]),
            "errors": len(errors),
            "warnings": len(all_issues) - len(errors),
            "fixed_files": result["fixed_files"],
        },
    )
    print(f"Pages scanned: {len(result['pages'])}")
    print(f"Errors: {len(errors)}")
    print(f"Warnings: {len(all_issues) - len(errors)}")
    if args.fix:
        print(f"Files fixed: {len(result['fixed_files'])}")
    print(f"Report: {report_path}")
    print(f"Summary: {summary_path}")
    if errors or (args.strict and all_issues):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
