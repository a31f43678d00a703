#!/usr/bin/env python3
"""
Generate BreadcrumbList schema files for every page and register them in page-config.json.
"""

from __future__ import annotations

import argparse
import json
import re
from pathlib import Path
from typing import Any

from ..build.run_fix_canonicals import desired_canonical
from ..common import dump_json, iter_html_files, read_text, rel_posix, soup_of, title_case
from ..config import ConfigError, load_config

UTILITY_PAGE_RE = re.compile(r"^(google|robots|sitemap|_headers|_redirects|404$)")
TITLE_SEPARATORS = (" | ", " - ")


def page_title(html: str) -> str:
    soup = soup_of(html)
    if not soup.title:
        return ""
    title = soup.title.get_text(" ", strip=True)
    for sep in TITLE_SEPARATORS:
        if sep in title:
            return title.split(sep, 1)[0].strip()
    return title


def build_crumbs(rel_path: str, base_url: str, pages: dict[str, Any], title: str = "") -> list[dict[str, str]]:
    base = base_url.rstrip("/")
    parts = rel_path.split("/")
    crumbs = [{"name": "Home", "url": f"{base}/"}]
    prefix = ""
    for slug in parts[:-1]:
        prefix = f"{prefix}/{slug}" if prefix else slug
        entry = pages.get(slug) or {}
        crumbs.append({"name": entry.get("name") or title_case(slug), "url": f"{base}/{prefix}/"})

    name = parts[-1][: -len(".html")]
    if name == "index":
        return crumbs
    entry = pages.get(name) or {}
    crumbs.append(
        {
            "name": entry.get("title") or entry.get("name") or title or title_case(name),
            "url": desired_canonical(rel_path, base),
        }
    )
    return crumbs


def breadcrumb_schema(crumbs: list[dict[str, str]]) -> dict[str, Any]:
    return {
        "@context": "https://schema.org",
        "@type": "BreadcrumbList",
        "itemListElement": [
            {"@type": "ListItem", "position": idx, "name": crumb["name"], "item": crumb["url"]}
            for idx, crumb in enumerate(crumbs, start=1)
        ],
    }


def register_breadcrumb(page_config: dict[str, Any], name: str) -> None:
    pages = page_config.setdefault("pages", {})
    entry = pages.setdefault(name, {"type": "WebPage", "requiredSchemas": ["WebSite"]})
    required = entry.setdefault("requiredSchemas", [])
    if "BreadcrumbList" not in required:
        required.append("BreadcrumbList")


def load_page_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {"pages": {}}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def generate_breadcrumbs(site_dir: Path, schemas_dir: Path, base_url: str, dry_run: bool = False) -> list[str]:
    config_path = schemas_dir / "page-config.json"
    page_config = load_page_config(config_path)
    pages = page_config.get("pages") or {}
    written: list[str] = []

    for path in iter_html_files(site_dir):
        rel = rel_posix(path, site_dir)
        parts = rel.split("/")
        name = parts[-1][: -len(".html")]
        if UTILITY_PAGE_RE.match(name):
            continue
        if name == "index":
            if len(parts) == 1:
                continue
            name = parts[-2]
        crumbs = build_crumbs(rel, base_url, pages, page_title(read_text(path)))
        out_path = schemas_dir / "breadcrumbs" / f"{name}-breadcrumbs.json"
        if not dry_run:
            dump_json(out_path, breadcrumb_schema(crumbs))
        register_breadcrumb(page_config, name)
        written.append(rel_posix(out_path, schemas_dir))

    if written and not dry_run:
        dump_json(config_path, page_config)
    return written


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate BreadcrumbList schema data files.")
    parser.add_argument("--root", default=".", help="Project root containing site.config.json")
    parser.add_argument("--site-dir", default="", help="HTML source directory (default: <root>/public)")
    parser.add_argument("--base-url", default="", help="Canonical base URL (default from config)")
    parser.add_argument("--dry-run", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.root)
    except ConfigError as exc:
        print(f"Error: {exc}")
        return 2
    site_dir = Path(args.site_dir).resolve() if args.site_dir else config.public_dir
    if not site_dir.is_dir():
        print(f"Error: site directory not found: {site_dir}")
        return 2
    try:
        written = generate_breadcrumbs(site_dir, config.schemas_dir, args.base_url or config.canonical_base, args.dry_run)
    except ValueError as exc:
        print(f"Error: invalid page config: {exc}")
        return 2

    verb = "Would generate" if args.dry_run else "Generated"
    print(f"{verb} breadcrumbs for {len(written)} page(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
