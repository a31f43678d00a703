#!/usr/bin/env python3
"""
Inject the critical theme script into HTML pages, or strip the legacy variant.

Modes:
  inject      add the script right after <head> unless the page already reads the storage key
  remove-old  delete the older system-preference script block
"""

from __future__ import annotations

import argparse
import re
from pathlib import Path

from ..common import iter_html_files, read_text, rel_posix, write_if_changed
from ..config import ConfigError, load_config

HEAD_OPEN_RE = re.compile(r"<head\b[^>]*>", re.IGNORECASE)
LEGACY_MARKER = "matchMedia('(prefers-color-scheme"
BLOCK_START = "<!-- Critical Theme Script"

DEFAULT_TEMPLATE = """    <!-- Critical Theme Script - Prevents FOUC -->
    <script>
    (function() {{
        try {{
            var t = localStorage.getItem('{key}') || 'light';
            document.documentElement.setAttribute('data-theme', t);
            document.documentElement.style.colorScheme = t;
        }} catch (e) {{}}
    }})();
    </script>
"""


def default_script(storage_key: str) -> str:
    return DEFAULT_TEMPLATE.format(key=storage_key)


def load_script(root: Path, storage_key: str, template: str = "") -> str:
    path = Path(template) if template else root / "templates" / "theme-script.html"
    if path.exists():
        return path.read_text(encoding="utf-8").replace("{{THEME_STORAGE_KEY}}", storage_key)
    if template:
        raise FileNotFoundError(f"theme script template not found: {path}")
    return default_script(storage_key)


def inject_script(html: str, script: str, storage_key: str) -> tuple[str, str]:
    """Return (html, reason); html is unchanged unless the reason is 'injected'."""
    if storage_key in html:
        return html, "already has theme script"
    match = HEAD_OPEN_RE.search(html)
    if not match:
        return html, "no <head> tag"
    insert = "\n" + script.rstrip("\n") + "\n"
    return html[: match.end()] + insert + html[match.end():], "injected"


def remove_old_script(html: str) -> tuple[str, str]:
    if LEGACY_MARKER not in html:
        return html, "no legacy theme script"
    lines = html.split("\n")
    kept: list[str] = []
    index = 0
    removed = 0
    while index < len(lines):
        line = lines[index]
        if BLOCK_START in line:
            end = index
            while end < len(lines) and "</script>" not in lines[end]:
                end += 1
            # only blocks carrying the system-preference check are legacy
            if end < len(lines) and any(LEGACY_MARKER in block_line for block_line in lines[index : end + 1]):
                end += 1
                while end < len(lines) and not lines[end].strip():
                    end += 1
                index = end
                removed += 1
                continue
        kept.append(line)
        index += 1
    if not removed:
        return html, "legacy script block not found"
    return "\n".join(kept), "removed"


def process_site(site_dir: Path, mode: str, script: str, storage_key: str, dry_run: bool = False) -> dict[str, list[str]]:
    changed: list[str] = []
    skipped: list[str] = []
    for path in iter_html_files(site_dir):
        rel = rel_posix(path, site_dir)
        html = read_text(path)
        if mode == "inject":
            updated, reason = inject_script(html, script, storage_key)
        else:
            updated, reason = remove_old_script(html)
        if updated == html:
            skipped.append(f"{rel} ({reason})")
            continue
        changed.append(rel)
        if not dry_run:
            write_if_changed(path, updated)
    return {"changed": changed, "skipped": skipped}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inject or remove the critical theme script.")
    parser.add_argument("mode", choices=["inject", "remove-old"])
    parser.add_argument("--root", default=".", help="Project root containing site.config.json")
    parser.add_argument("--site-dir", default="", help="HTML directory (default: <root>/public)")
    parser.add_argument("--template", default="", help="Theme script snippet (default: templates/theme-script.html)")
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
        script = load_script(config.root, config.theme_storage_key, args.template)
    except FileNotFoundError as exc:
        print(f"Error: {exc}")
        return 2

    result = process_site(site_dir, args.mode, script, config.theme_storage_key, args.dry_run)
    for rel in result["changed"]:
        print(f"  {rel}")
    verb = "Would modify" if args.dry_run else "Modified"
    print(f"{verb} {len(result['changed'])} file(s), skipped {len(result['skipped'])}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
