#!/usr/bin/env python3
"""
Repair mojibake left behind when UTF-8 text was decoded as Windows-1252 and saved again.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from ..common import rel_posix, write_if_changed

BOM = "\ufeff"
EXCLUDED_DIRS = {"node_modules"}
DEFAULT_SUFFIXES = (".html", ".css", ".js", ".json", ".md", ".xml", ".txt")

# Characters that commonly appear in copy and break under a cp1252 round trip.
TARGET_CHARS = (
    "—–‘’“”…•\u00a0©®™·"
    "←↑→↓↻✅✓✔✖❌⚠⚡⭐✨"
    "\U0001F680\U0001F4A1\U0001F527\U0001F512\U0001F310\U0001F4B0\U0001F4C8\U0001F4F1"
    "\U0001F4CA\U0001F3AF\U0001F525\U0001F468\U0001F465\U0001F464\U0001F4BC\U0001F4AA"
    "\U0001F389\U0001F4DD\U0001F4BB\U0001F517\U0001F4E6\U0001F3C6\U0001F3E2\U0001F3E5"
    "\U0001F3E6\U0001F3ED\U0001F4BA\U0001F6E0\U0001F4CB\U0001F4C4\U0001F9E9\U0001F6A9"
    "\U0001F4CE\U0001F48E\U0001F440\U0001F52E\U0001F31F\U0001F5C4"
    "éèàüöäñç"
)


def cp1252_mojibake(ch: str) -> str:
    """Render ch the way a UTF-8 file looks after being read as cp1252.

    Bytes that cp1252 leaves undefined (0x81, 0x8D, 0x8F, 0x90, 0x9D) pass
    through as their latin-1 code points, which is what editors write back.
    """
    out = []
    for byte in ch.encode("utf-8"):
        try:
            out.append(bytes([byte]).decode("cp1252"))
        except UnicodeDecodeError:
            out.append(chr(byte))
    return "".join(out)


def build_fix_map(chars: str = TARGET_CHARS) -> dict[str, str]:
    fixes = {}
    for ch in chars:
        broken = cp1252_mojibake(ch)
        if broken != ch:
            fixes[broken] = ch
    return fixes


FIX_MAP = build_fix_map()
# Longest first so a shorter sequence never splits a longer one.
ORDERED_FIXES = sorted(FIX_MAP.items(), key=lambda item: len(item[0]), reverse=True)


def fix_text(text: str) -> tuple[str, int]:
    count = 0
    if text.startswith(BOM):
        text = text[len(BOM):]
        count += 1
    for broken, fixed in ORDERED_FIXES:
        hits = text.count(broken)
        if hits:
            text = text.replace(broken, fixed)
            count += hits
    return text, count


def iter_text_files(root: Path, suffixes: tuple[str, ...]) -> list[Path]:
    files = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in suffixes:
            continue
        if any(part.startswith(".") or part in EXCLUDED_DIRS for part in path.relative_to(root).parts[:-1]):
            continue
        files.append(path)
    return files


def fix_tree(root: Path, suffixes: tuple[str, ...] = DEFAULT_SUFFIXES, dry_run: bool = False) -> dict[str, int]:
    changed: dict[str, int] = {}
    for path in iter_text_files(root, suffixes):
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            print(f"Warning: skipping non-UTF-8 file {rel_posix(path, root)}")
            continue
        fixed, count = fix_text(text)
        if not count:
            continue
        changed[rel_posix(path, root)] = count
        if not dry_run:
            write_if_changed(path, fixed)
    return changed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fix UTF-8 mojibake and stray BOMs in site files.")
    parser.add_argument("--dir", default="public", help="Directory to scan")
    parser.add_argument("--ext", default=",".join(DEFAULT_SUFFIXES), help="Comma-separated file extensions")
    parser.add_argument("--dry-run", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    root = Path(args.dir).resolve()
    if not root.is_dir():
        print(f"Error: directory not found: {root}")
        return 2
    suffixes = tuple(
        ext if ext.startswith(".") else f".{ext}"
        for ext in (part.strip().lower() for part in args.ext.split(","))
        if ext
    )

    changed = fix_tree(root, suffixes, args.dry_run)
    for rel, count in changed.items():
        print(f"  {rel}: {count} replacement(s)")
    verb = "Would fix" if args.dry_run else "Fixed"
    print(f"{verb} {sum(changed.values())} sequence(s) in {len(changed)} file(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
