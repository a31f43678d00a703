#!/usr/bin/env python3
"""
Detect layout movement of top-level body elements between DOMContentLoaded and a settle delay.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from ..common import split_csv, write_summary
from ..config import ConfigError, load_config
from .session import visit_pages

SHIFT_THRESHOLD_PX = 1.0

SNAPSHOT_JS = """() => Array.from(document.body ? document.body.children : []).map((el) => {
    const rect = el.getBoundingClientRect();
    return {
        tag: el.tagName.toLowerCase(),
        className: typeof el.className === "string" ? el.className : "",
        top: rect.top + window.scrollY,
        height: rect.height,
    };
})"""

CLS_OBSERVER_JS = """() => {
    window.__clsValue = 0;
    try {
        new PerformanceObserver((list) => {
            for (const entry of list.getEntries()) {
                if (!entry.hadRecentInput) window.__clsValue += entry.value;
            }
        }).observe({ type: "layout-shift", buffered: true });
    } catch (e) {}
}"""


def diff_snapshots(before: list[dict[str, Any]], after: list[dict[str, Any]], threshold: float = SHIFT_THRESHOLD_PX) -> list[dict[str, Any]]:
    """Pair elements by position and report those whose top or height moved beyond threshold."""
    shifts = []
    for index, (old, new) in enumerate(zip(before, after)):
        delta_top = float(new["top"]) - float(old["top"])
        delta_height = float(new["height"]) - float(old["height"])
        if abs(delta_top) > threshold or abs(delta_height) > threshold:
            shifts.append(
                {
                    "index": index,
                    "tag": new["tag"],
                    "className": new.get("className", ""),
                    "delta_top": round(delta_top, 2),
                    "delta_height": round(delta_height, 2),
                }
            )
    return shifts


def make_visitor(settle_ms: int):
    def visit(page: Any, url: str, timeout_ms: int) -> dict[str, Any]:
        page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        page.evaluate(CLS_OBSERVER_JS)
        before = page.evaluate(SNAPSHOT_JS)
        page.wait_for_timeout(settle_ms)
        after = page.evaluate(SNAPSHOT_JS)
        cls = float(page.evaluate("() => window.__clsValue || 0"))
        return {
            "cls": round(cls, 4),
            "elements": len(after),
            "element_count_changed": len(before) != len(after),
            "shifts": diff_snapshots(before, after),
        }

    return visit


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Report layout shifts after page load.")
    parser.add_argument("--root", default=".", help="Project root containing site.config.json")
    parser.add_argument("--base-url", default="", help="Site under test (default: TEST_BASE_URL)")
    parser.add_argument("--paths", default="/", help="Comma-separated paths to load")
    parser.add_argument("--settle-ms", type=int, default=2000, help="Delay before the second snapshot")
    parser.add_argument("--output-dir", default="layout-shift-output")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.settle_ms < 0:
        print("Error: --settle-ms must be >= 0")
        return 2
    try:
        config = load_config(args.root)
    except ConfigError as exc:
        print(f"Error: {exc}")
        return 2
    base_url = args.base_url or config.test_base_url
    paths = split_csv(args.paths) or ["/"]

    run = visit_pages(base_url, paths, make_visitor(args.settle_ms), timeout_ms=config.test_timeout_ms)
    summary_path = write_summary(
        Path(args.output_dir).resolve(),
        {"base_url": base_url, "settle_ms": args.settle_ms, "status": run["status"], "reason": run["reason"], "pages": run["pages"]},
    )
    if run["status"] != "ok":
        print(f"Error: browser check {run['status']}: {run['reason']}")
        return 1

    shifted = 0
    for page in run["pages"]:
        if page.get("error"):
            print(f"FAIL {page['path']}: {page['error']}")
            shifted += 1
            continue
        print(f"{page['path']}: CLS {page['cls']}, {len(page['shifts'])} shifted element(s)")
        for shift in page["shifts"]:
            label = f"{shift['tag']}.{shift['className']}" if shift["className"] else shift["tag"]
            print(f"  {label}: top {shift['delta_top']:+}px, height {shift['delta_height']:+}px")
        if page["shifts"]:
            shifted += 1
    print(f"Summary: {summary_path}")
    return 1 if shifted else 0


if __name__ == "__main__":
    raise SystemExit(main())
