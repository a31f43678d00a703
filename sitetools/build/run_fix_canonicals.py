#!/usr/bin/env python3
"""
Rewrite every page's <link rel="canonical"> to its clean production URL.
"""

from __future__ import annotations

import argparse
import re
from pathlib import Path

from ..common import iter_html_files, read_text, rel_posix, write_if_changed
from ..config import ConfigError, load_config

CANONICAL_TAG_RE = re.compile(r"<link\b[^>]*rel=[\"']canonical[\"'][^>]*>", re.IGNORECASE)
HREF_ATTR_RE = re.compile(r"""href=(["'])[^"']*\1""", re.IGNORECASE)


def desired_canonical(rel_path: str, base_url: str) -> str:
    base = base_url.rstrip("/")
    rel = rel_path.replace("\\", "/")
    if rel == "index.html":
        return f"{base}/"
    if rel.endswith("/index.html"):
        return f"{base}/{rel[: -len('index.html')]}"
    if rel.endswith(".html"):
        rel = rel[: -len(".html")]
    return f"{base}/{rel}"


def set_canonical(content: str, url: str) -> str:
    match = CANONICAL_TAG_RE.search(content)
    if match:
        tag = match.group(0)
        if HREF_ATTR_RE.search(tag):
            new_tag = HREF_ATTR_RE.sub(f'href="{url}"', tag, count=1)
        else:
            new_tag = tag.replace("<link", f'<link href="{url}"', 1)
        return content[: match.start()] + new_tag + content[match.end() :]
    tag = f'<link rel="canonical" href="{url}">'
    if "</head>" in content:
        return content.replace("</head>", f"    {tag}\n</head>", 1)
    return content


def fix_canonicals(site_dir: Path, base_url: str, dry_run: bool = False) -> list[str]:
    """Return relative paths of the pages whose canonical changed."""
    changed: list[str] = []
    for path in iter_html_files(site_dir):
        rel = rel_posix(path, site_dir)
        content = read_text(path)
        updated = set_canonical(content, desired_canonical(rel, base_url))
        if updated == content:
            continue
        changed.append(rel)
        if not dry_run:
            write_if_changed(path, updated)
    return changed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fix canonical link tags in built HTML.")
    parser.add_argument("--root", default=".", help="Project root containing site.config.json")
    parser.add_argument("--site-dir", default="", help="HTML directory (default: <root>/dist)")
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
    site_dir = Path(args.site_dir).resolve() if args.site_dir else config.dist_dir
    if not site_dir.is_dir():
        print(f"Error: site directory not found: {site_dir}")
        return 2

    changed = fix_canonicals(site_dir, args.base_url or config.canonical_base, dry_run=args.dry_run)
    verb = "Would update" if args.dry_run else "Updated"
    for rel in changed:
        print(f"  {rel}")
    print(f"{verb} canonical tags in {len(changed)} file(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
