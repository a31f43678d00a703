#!/usr/bin/env python3
"""
SEO smoke test against a running site.

Per page (rendered in Chromium): status 200, description/canonical/Open Graph/Twitter
tags, parseable JSON-LD, an H1, the expected canonical, and a non-generic title.
Site-wide (plain HTTP): robots.txt advertises a sitemap and the sitemap lists the root URL.
"""

from __future__ import annotations

import argparse
import json
import re
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import requests

from ..common import JSONLD_TYPE_RE, add_issue, canonical_href, issue_lines, meta, soup_of, split_csv, write_summary
from ..config import ConfigError, load_config
from .session import page_url, visit_pages

ROBOTS_SITEMAP_RE = re.compile(r"^\s*Sitemap:\s*https?://\S+/sitemap\.xml\s*$", re.IGNORECASE | re.MULTILINE)
LOC_RE = re.compile(r"<loc>\s*(.*?)\s*</loc>", re.IGNORECASE | re.DOTALL)
REQUIRED_META = (
    ("name", "description"),
    ("property", "og:title"),
    ("property", "og:description"),
    ("name", "twitter:card"),
)


def normalize_canonical(url: str) -> str:
    value = (url or "").strip().split("#", 1)[0]
    if value.endswith(".html"):
        value = value[: -len(".html")]
    if value.endswith("/index"):
        value = value[: -len("index")]
    return value.rstrip("/")


def check_page_html(html: str, status: int | None, expected_canonical: str, generic_title: str) -> list[dict[str, str]]:
    issues: list[dict[str, str]] = []
    if status != 200:
        add_issue(issues, "Critical", "Bad HTTP status", f"Expected 200, got {status}.")
    soup = soup_of(html)

    for attr, key in REQUIRED_META:
        found = meta(soup, name=key) if attr == "name" else meta(soup, prop=key)
        if not found:
            add_issue(issues, "High", f"Missing {key}", f'No <meta {attr}="{key}"> tag.')

    canonical = canonical_href(soup)
    if not canonical:
        add_issue(issues, "High", "Missing canonical", 'No <link rel="canonical"> tag.')
    elif normalize_canonical(canonical) != normalize_canonical(expected_canonical):
        add_issue(issues, "High", "Canonical mismatch", f"Found {canonical}, expected {expected_canonical}.")

    for index, script in enumerate(soup.find_all("script", attrs={"type": JSONLD_TYPE_RE}), start=1):
        try:
            payload = json.loads(script.string or script.get_text() or "")
        except json.JSONDecodeError as exc:
            add_issue(issues, "High", "Invalid JSON-LD", f"Block {index}: {exc}.")
            continue
        nodes = payload if isinstance(payload, list) else [payload]
        for node in nodes:
            if not isinstance(node, dict) or "@context" not in node or "@type" not in node:
                add_issue(issues, "Medium", "Incomplete JSON-LD", f"Block {index} lacks @context or @type.")

    if not soup.find("h1"):
        add_issue(issues, "High", "Missing H1", "Page has no H1 heading.")

    title = soup.title.get_text(strip=True) if soup.title else ""
    if not title:
        add_issue(issues, "High", "Missing title", "Page has no <title>.")
    elif generic_title and title.strip().lower() == generic_title.strip().lower():
        add_issue(issues, "Medium", "Generic title", f"Title is the generic site title {title!r}.")
    return issues


def robots_has_sitemap(robots_text: str) -> bool:
    return bool(ROBOTS_SITEMAP_RE.search(robots_text or ""))


def sitemap_has_root(sitemap_xml: str, base_url: str) -> bool:
    root = normalize_canonical(base_url)
    return any(normalize_canonical(loc) == root for loc in LOC_RE.findall(sitemap_xml or ""))


def fetch_text(url: str, timeout: int) -> tuple[int | None, str]:
    try:
        response = requests.get(url, timeout=timeout)
        return response.status_code, response.text
    except requests.exceptions.RequestException:
        return None, ""


def site_checks(base_url: str, canonical_base: str, timeout: int) -> list[dict[str, str]]:
    issues: list[dict[str, str]] = []
    status, robots = fetch_text(page_url(base_url, "/robots.txt"), timeout)
    if status != 200 or not robots_has_sitemap(robots):
        add_issue(issues, "High", "robots.txt sitemap", "robots.txt missing or lacks a 'Sitemap: .../sitemap.xml' line.")
    status, sitemap = fetch_text(page_url(base_url, "/sitemap.xml"), timeout)
    if status != 200:
        add_issue(issues, "High", "sitemap.xml unavailable", f"GET /sitemap.xml returned {status}.")
    elif not sitemap_has_root(sitemap, canonical_base):
        add_issue(issues, "Medium", "Sitemap root", f"sitemap.xml does not list {canonical_base}/.")
    return issues


def make_visitor(canonical_base: str, generic_title: str):
    def visit(page: Any, url: str, timeout_ms: int) -> dict[str, Any]:
        response = page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        expected = page_url(canonical_base, urlparse(url).path)
        status = response.status if response else None
        return {"issues": check_page_html(page.content(), status, expected, generic_title)}

    return visit


def render_report(out_path: Path, base_url: str, run: dict[str, Any], site_issues: list[dict[str, str]]) -> None:
    sections = []
    for page in run["pages"]:
        if page.get("error"):
            sections.append(f"### `{page['path']}`\n- **Critical** Navigation failed: {page['error']}")
        elif page.get("issues"):
            sections.append(f"### `{page['path']}`\n{issue_lines(page['issues'])}")
    report = f"""# SEO Smoke Report

## Target
- `{base_url}`
- Browser status: {run['status']} {run['reason']}

## Site-wide
{issue_lines(site_issues)}

## Pages
{chr(10).join(sections) if sections else "- All pages passed"}
"""
    out_path.write_text(report, encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run SEO smoke checks against a live or local site.")
    parser.add_argument("--root", default=".", help="Project root containing site.config.json")
    parser.add_argument("--base-url", default="", help="Site under test (default: TEST_BASE_URL)")
    parser.add_argument("--paths", default="/", help="Comma-separated paths to check")
    parser.add_argument("--output-dir", default="seo-smoke-output")
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
    timeout_s = max(1, config.test_timeout_ms // 1000)

    site_issues = site_checks(base_url, config.canonical_base, timeout_s)
    run = visit_pages(
        base_url,
        paths,
        make_visitor(config.canonical_base, config.generic_title),
        timeout_ms=config.test_timeout_ms,
    )

    out_dir = Path(args.output_dir).resolve()
    out_dir.mkdir(parents=True, exist_ok=True)
    report_path = out_dir / "SEO-SMOKE-REPORT.md"
    render_report(report_path, base_url, run, site_issues)
    page_failures = [p for p in run["pages"] if p.get("error") or p.get("issues")]
    summary_path = write_summary(
        out_dir,
        {
            "base_url": base_url,
            "browser_status": run["status"],
            "reason": run["reason"],
            "site_issues": site_issues,
            "pages": run["pages"],
        },
    )

    print(f"Pages checked: {len(run['pages'])}")
    print(f"Pages failing: {len(page_failures)}")
    print(f"Site-wide issues: {len(site_issues)}")
    print(f"Report: {report_path}")
    print(f"Summary: {summary_path}")
    if run["status"] != "ok":
        print(f"Error: browser check {run['status']}: {run['reason']}")
        return 1
    return 1 if page_failures or site_issues else 0


if __name__ == "__main__":
    raise SystemExit(main())
