#!/usr/bin/env python3
"""
Generate sitemap.xml and robots.txt from content data and discovered pages.
"""

from __future__ import annotations

import argparse
import json
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

from ..common import iter_html_files, rel_posix
from ..config import ConfigError, load_config

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
ROBOTS_DISALLOW = ["/api/", "/admin/", "/_*"]


@dataclass
class SitemapEntry:
    slug: str
    lastmod: str
    priority: str
    changefreq: str


def slug_for(rel_path: str) -> str:
    slug = rel_path
    if slug == "index.html":
        return ""
    if slug.endswith("/index.html"):
        return slug[: -len("/index.html")]
    if slug.endswith(".html"):
        slug = slug[: -len(".html")]
    return slug


def read_json_file(path: Path) -> Any:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        print(f"Warning: could not parse {path}: {exc}")
        return None


def discovered_entries(site_dir: Path, today: str) -> list[SitemapEntry]:
    entries = []
    for path in iter_html_files(site_dir):
        rel = rel_posix(path, site_dir)
        if rel == "404.html":
            continue
        slug = slug_for(rel)
        entries.append(SitemapEntry(slug, today, "1.0" if slug == "" else "0.5", "weekly"))
    return entries


def service_entries(content_dir: Path, today: str) -> list[SitemapEntry]:
    data = read_json_file(content_dir / "services.json")
    if not isinstance(data, dict):
        return []
    return [
        SitemapEntry(f"services/{item['slug']}", today, "0.7", "monthly")
        for item in data.get("services") or []
        if isinstance(item, dict) and item.get("slug")
    ]


def post_entries(content_dir: Path, today: str) -> list[SitemapEntry]:
    data = read_json_file(content_dir / "blog" / "posts.json")
    if not isinstance(data, dict):
        return []
    entries = []
    for post in data.get("posts") or []:
        if not isinstance(post, dict) or post.get("status") != "published" or not post.get("slug"):
            continue
        lastmod = post.get("updatedAt") or post.get("publishedAt") or today
        entries.append(SitemapEntry(f"blog/{post['slug']}", str(lastmod)[:10], "0.6", "monthly"))
    return entries


def page_entries(content_dir: Path, today: str) -> list[SitemapEntry]:
    pages_dir = content_dir / "pages"
    entries = []
    if not pages_dir.is_dir():
        return entries
    for path in sorted(pages_dir.glob("*.json")):
        data = read_json_file(path)
        if not isinstance(data, dict):
            continue
        page_meta = data.get("meta") or {}
        slug = "" if path.stem == "index" else path.stem
        priority = page_meta.get("priority")
        if priority is None or priority == "":
            priority = "1.0" if slug == "" else "0.8"
        entries.append(
            SitemapEntry(
                slug,
                str(page_meta.get("lastModified") or today),
                str(priority),
                str(page_meta.get("changefreq") or "weekly"),
            )
        )
    return entries


def collect_entries(site_dir: Path, content_dir: Path, today: str | None = None) -> list[SitemapEntry]:
    """Later sources win: discovered HTML < services < blog posts < content pages."""
    today = today or date.today().isoformat()
    merged: dict[str, SitemapEntry] = {}
    for source in (
        discovered_entries(site_dir, today),
        service_entries(content_dir, today),
        post_entries(content_dir, today),
        page_entries(content_dir, today),
    ):
        for entry in source:
            merged[entry.slug] = entry
    return sorted(merged.values(), key=lambda e: (e.slug != "", e.slug))


def build_urlset(entries: list[SitemapEntry], base_url: str) -> ET.Element:
    root = ET.Element("urlset", xmlns=SITEMAP_NS)
    base = base_url.rstrip("/")
    for entry in entries:
        url_node = ET.SubElement(root, "url")
        ET.SubElement(url_node, "loc").text = f"{base}/{entry.slug}"
        ET.SubElement(url_node, "lastmod").text = entry.lastmod
        ET.SubElement(url_node, "changefreq").text = entry.changefreq
        ET.SubElement(url_node, "priority").text = entry.priority
    return root


def write_xml(path: Path, root: ET.Element) -> None:
    ET.indent(root, space="  ")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(ET.tostring(root, encoding="utf-8", xml_declaration=True))


def robots_txt(base_url: str) -> str:
    lines = [f"# robots.txt for {base_url}", "", "User-agent: *", "Allow: /", ""]
    lines.extend(f"Disallow: {path}" for path in ROBOTS_DISALLOW)
    lines.extend(["", f"Sitemap: {base_url.rstrip('/')}/sitemap.xml", ""])
    return "\n".join(lines)


def generate(site_dir: Path, content_dir: Path, out_dir: Path, base_url: str) -> dict[str, Any]:
    entries = collect_entries(site_dir, content_dir)
    sitemap_path = out_dir / "sitemap.xml"
    robots_path = out_dir / "robots.txt"
    write_xml(sitemap_path, build_urlset(entries, base_url))
    robots_path.write_text(robots_txt(base_url), encoding="utf-8")
    return {"url_count": len(entries), "sitemap": str(sitemap_path), "robots": str(robots_path)}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate sitemap.xml and robots.txt.")
    parser.add_argument("--root", default=".", help="Project root containing site.config.json")
    parser.add_argument("--site-dir", default="", help="HTML directory to scan (default: <root>/public)")
    parser.add_argument("--output-dir", default="", help="Where to write the files (default: <root>/dist)")
    parser.add_argument("--base-url", default="", help="Site URL (default from config)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.root)
    except ConfigError as exc:
        print(f"Error: {exc}")
        return 2
    site_dir = Path(args.site_dir).resolve() if args.site_dir else config.public_dir
    out_dir = Path(args.output_dir).resolve() if args.output_dir else config.dist_dir
    if not site_dir.is_dir():
        print(f"Error: site directory not found: {site_dir}")
        return 2

    result = generate(site_dir, config.content_dir, out_dir, args.base_url or config.production_url)
    print(f"Sitemap URLs: {result['url_count']}")
    print(f"Sitemap: {result['sitemap']}")
    print(f"Robots: {result['robots']}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
