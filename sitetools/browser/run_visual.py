#!/usr/bin/env python3
"""
Capture full-page screenshots plus a head/asset snapshot for visual review.
"""

from __future__ import annotations

import argparse
import hashlib
import re
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from ..common import split_csv, write_summary
from ..config import ConfigError, load_config
from .session import visit_pages

HEAD_EXCERPT_CHARS = 2000
HEAD_RE = re.compile(r"<head\b[^>]*>(.*?)</head>", re.IGNORECASE | re.DOTALL)
STYLESHEET_RE = re.compile(r"<link\b[^>]*rel=[\"']?stylesheet", re.IGNORECASE)
SCRIPT_RE = re.compile(r"<script\b", re.IGNORECASE)
TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


def screenshot_name(path: str) -> str:
    """File name for a page screenshot; paths that lose characters in the slug get a short hash suffix."""
    cleaned = path.strip("/")
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned).strip("-")
    if slug and slug != cleaned:
        slug = f"{slug}-{hashlib.sha1(cleaned.encode('utf-8')).hexdigest()[:8]}"
    return f"{slug or 'home'}.png"


def head_snapshot(html: str) -> dict[str, Any]:
    match = HEAD_RE.search(html)
    head = match.group(1) if match else ""
    title = TITLE_RE.search(head)
    return {
        "title": " ".join(title.group(1).split()) if title else "",
        "head_excerpt": head.strip()[:HEAD_EXCERPT_CHARS],
        "stylesheets": len(STYLESHEET_RE.findall(html)),
        "scripts": len(SCRIPT_RE.findall(html)),
    }


def make_visitor(shots_dir: Path):
    def visit(page: Any, url: str, timeout_ms: int) -> dict[str, Any]:
        page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        page.wait_for_timeout(600)
        shot = shots_dir / screenshot_name(urlparse(url).path)
        page.screenshot(path=str(shot), full_page=True)
        return {"screenshot": str(shot), **head_snapshot(page.content())}

    return visit


def render_report(out_path: Path, base_url: str, run: dict[str, Any]) -> None:
    rows = []
    for page in run["pages"]:
        if page.get("error"):
            rows.append(f"| `{page['path']}` | failed | - | - | {page['error']} |")
            continue
        rows.append(
            f"| `{page['path']}` | {page['title'] or '-'} | {page['stylesheets']} | {page['scripts']} | "
            f"`{Path(page['screenshot']).name}` |"
        )
    report = f"""# Visual Snapshot Report

## Target
- `{base_url}`
- Browser status: {run['status']} {run['reason']}

## Pages
| Path | Title | Stylesheets | Scripts | Screenshot |
|---|---|---:|---:|---|
{chr(10).join(rows) if rows else "| - | - | - | - | - |"}
"""
    out_path.write_text(report, encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Take full-page screenshots and record head assets.")
    parser.add_argument("--root", default=".", help="Project root containing site.config.json")
    parser.add_argument("--base-url", default="", help="Site under test (default: TEST_BASE_URL)")
    parser.add_argument("--paths", default="/", help="Comma-separated paths to capture")
    parser.add_argument("--output-dir", default="visual-output")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.root)
    except ConfigError as exc:
        print(f"Error: {exc}")
        return 2
    base_url = args.base_url or config.test_base_url
    paths = split_csv(args.paths) or ["/"]
    out_dir = Path(args.output_dir).resolve()
    shots_dir = out_dir / "screenshots"
    shots_dir.mkdir(parents=True, exist_ok=True)

    run = visit_pages(base_url, paths, make_visitor(shots_dir), timeout_ms=config.test_timeout_ms)
    report_path = out_dir / "VISUAL-REPORT.md"
    render_report(report_path, base_url, run)
    summary_path = write_summary(
        out_dir, {"base_url": base_url, "status": run["status"], "reason": run["reason"], "pages": run["pages"]}
    )
    print(f"Pages captured: {sum(1 for p in run['pages'] if not p.get('error'))}/{len(paths)}")
    print(f"Report: {report_path}")
    print(f"Summary: {summary_path}")
    if run["status"] != "ok":
        print(f"Error: browser check {run['status']}: {run['reason']}")
        return 1
    return 1 if any(p.get("error") for p in run["pages"]) else 0


if __name__ == "__main__":
    raise SystemExit(main())
