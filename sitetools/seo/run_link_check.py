#!/usr/bin/env python3
"""
Internal link health checker with content-cluster analytics.
"""

from __future__ import annotations

import argparse
import json
from collections import Counter
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any
from urllib.parse import unquote

from ..common import add_issue, issue_lines, iter_html_files, read_text, rel_posix, soup_of, write_summary

SKIPPED_SCHEMES = ("http:", "https:", "//", "mailto:", "tel:", "javascript:", "#", "data:")


@dataclass
class BrokenLink:
    file: str
    href: str
    text: str
    expected_path: str


def is_external(href: str) -> bool:
    return not href or href.lower().startswith(SKIPPED_SCHEMES)


def resolve_link(href: str, page_dir: Path, site_dir: Path) -> Path:
    clean = unquote(href.split("#", 1)[0].split("?", 1)[0])
    if clean.startswith("/"):
        return site_dir / clean.lstrip("/")
    return page_dir / clean


def link_target_exists(target: Path) -> bool:
    if target.is_file():
        return True
    if target.with_name(target.name + ".html").is_file():
        return True
    return (target / "index.html").is_file()


def check_links(site_dir: Path) -> dict[str, Any]:
    totals = Counter()
    clusters: Counter[str] = Counter()
    positions: Counter[str] = Counter()
    content_types: Counter[str] = Counter()
    broken: list[BrokenLink] = []
    pages = iter_html_files(site_dir)

    for path in pages:
        soup = soup_of(read_text(path))
        for anchor in soup.find_all("a", href=True):
            href = str(anchor.get("href")).strip()
            totals["total"] += 1
            if is_external(href):
                totals["external"] += 1
                continue
            target = resolve_link(href, path.parent, site_dir)
            if not link_target_exists(target):
                broken.append(
                    BrokenLink(
                        file=rel_posix(path, site_dir),
                        href=href,
                        text=anchor.get_text(" ", strip=True)[:120],
                        expected_path=str(target),
                    )
                )
                continue
            totals["internal"] += 1
            if anchor.get("data-content-cluster"):
                clusters[str(anchor["data-content-cluster"])] += 1
            if anchor.get("data-link-position"):
                positions[str(anchor["data-link-position"])] += 1
            if anchor.get("data-content-type"):
                content_types[str(anchor["data-content-type"])] += 1

    return {
        "pages_scanned": len(pages),
        "total_links": totals["total"],
        "internal_links": totals["internal"],
        "external_links": totals["external"],
        "broken_links": [asdict(item) for item in broken],
        "link_clusters": dict(clusters.most_common()),
        "link_positions": dict(positions.most_common()),
        "content_types": dict(content_types.most_common()),
    }


def render_report(out_path: Path, site_dir: Path, result: dict[str, Any]) -> None:
    issues: list[dict[str, str]] = []
    for item in result["broken_links"]:
        add_issue(issues, "High", f"Broken link in {item['file']}", f"`{item['href']}` ({item['text'] or 'no text'})")

    def counter_lines(values: dict[str, int]) -> str:
        return "\n".join(f"- {key}: {count}" for key, count in values.items()) if values else "- None"

    report = f"""# Link Health Report

## Source
- `{site_dir}`

## Summary
- Pages scanned: {result['pages_scanned']}
- Total links: {result['total_links']}
- Internal links: {result['internal_links']}
- External/skipped links: {result['external_links']}
- Broken links: {len(result['broken_links'])}

## Broken Links
{issue_lines(issues)}

## Content Clusters
{counter_lines(result['link_clusters'])}

## Link Positions
{counter_lines(result['link_positions'])}

## Content Types
{counter_lines(result['content_types'])}
"""
    out_path.write_text(report, encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate internal links in static HTML.")
    parser.add_argument("--site-dir", default="public", help="HTML root to scan")
    parser.add_argument("--output-dir", default="link-check-output")
    return parser


def run(site_dir: Path, out_dir: Path) -> tuple[int, dict[str, Any]]:
    result = check_links(site_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    (out_dir / "link-report.json").write_text(json.dumps(result, indent=2), encoding="utf-8")
    render_report(out_dir / "LINK-REPORT.md", site_dir, result)
    write_summary(
        out_dir,
        {
            "site_dir": str(site_dir),
            "pages_scanned": result["pages_scanned"],
            "internal_links": result["internal_links"],
            "broken_links": len(result["broken_links"]),
        },
    )
    return (1 if result["broken_links"] else 0), result


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    site_dir = Path(args.site_dir).resolve()
    if not site_dir.is_dir():
        print(f"Error: site directory not found: {site_dir}")
        return 2

    code, result = run(site_dir, Path(args.output_dir).resolve())
    print(f"Pages scanned: {result['pages_scanned']}")
    print(f"Internal links: {result['internal_links']}")
    print(f"Broken links: {len(result['broken_links'])}")
    for item in result["broken_links"][:20]:
        print(f"  {item['file']}: {item['href']}")
    return code


if __name__ == "__main__":
    raise SystemExit(main())
