#!/usr/bin/env python3
"""
Point apex-domain hrefs (hreflang alternates, canonicals, links) at the www host.
"""

from __future__ import annotations

import argparse
import re
from pathlib import Path

from ..common import canonical_host, iter_html_files, read_text, rel_posix, write_if_changed
from ..config import ConfigError, load_config


def apex_href_re(domain: str) -> re.Pattern[str]:
    return re.compile(rf'href="https://{re.escape(canonical_host(domain))}(?=[/"])')


def fix_apex_hrefs(content: str, domain: str) -> tuple[str, int]:
    apex = canonical_host(domain)
    return apex_href_re(apex).subn(f'href="https://www.{apex}', content)


def fix_site(site_dir: Path, domain: str, dry_run: bool = False) -> dict[str, int]:
    changed: dict[str, int] = {}
    for path in iter_html_files(site_dir):
        updated, count = fix_apex_hrefs(read_text(path), domain)
        if not count:
            continue
        changed[rel_posix(path, site_dir)] = count
        if not dry_run:
            write_if_changed(path, updated)
    return changed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rewrite apex-domain hrefs to the www host.")
    parser.add_argument("--root", default=".", help="Project root containing site.config.json")
    parser.add_argument("--site-dir", default="", help="HTML directory (default: <root>/public)")
    parser.add_argument("--domain", default="", help="Apex domain (default from config)")
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

    changed = fix_site(site_dir, args.domain or config.domain, args.dry_run)
    for rel, count in changed.items():
        print(f"  {rel}: {count} href(s)")
    verb = "Would fix" if args.dry_run else "Fixed"
    print(f"{verb} {sum(changed.values())} href(s) in {len(changed)} file(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
