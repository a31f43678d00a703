#!/usr/bin/env python3
"""
Provision `keywords` for Article and WebPage schema data files that lack them.
"""

from __future__ import annotations

import argparse
import json
import re
from collections import Counter
from pathlib import Path
from typing import Any

from ..common import dump_json, rel_posix
from ..config import ConfigError, load_config

URL_RE = re.compile(r"https?://\S+")
NON_WORD_RE = re.compile(r"[\W_]+")
KEYWORD_TYPES = {"Article", "WebPage"}
TOP_WORDS = 6
MAX_KEYWORDS = 8
BODY_SAMPLE = 1000
DEFAULT_FOCUS_PHRASE = "Cloudflare Workers"

STOPWORDS = {
    "the",
    "and",
    "for",
    "with",
    "that",
    "this",
    "from",
    "into",
    "how",
    "learn",
    "guide",
    "best",
    "our",
    "using",
    "use",
    "your",
    "what",
    "site",
    "about",
    "when",
    "will",
    "more",
}


def tokenize(text: str) -> list[str]:
    cleaned = NON_WORD_RE.sub(" ", URL_RE.sub("", text.lower()))
    return [w for w in cleaned.split() if len(w) > 3 and not w.isdigit() and w not in STOPWORDS]


def top_words(words: list[str], n: int = TOP_WORDS) -> list[str]:
    return [word for word, _ in Counter(words).most_common(n)]


def has_keywords(data: dict[str, Any]) -> bool:
    value = data.get("keywords")
    if isinstance(value, list):
        return any(str(v).strip() for v in value)
    return bool(str(value or "").strip())


def schema_text(data: dict[str, Any]) -> str:
    parts = [str(data.get(key) or "") for key in ("headline", "title", "name", "description")]
    parts.append(str(data.get("articleBody") or "")[:BODY_SAMPLE])
    return " ".join(p for p in parts if p)


def build_keywords(text: str, brand: str, focus_phrase: str = DEFAULT_FOCUS_PHRASE) -> list[str]:
    keywords: list[str] = []
    lower = text.lower()
    if focus_phrase and any(word.lower() in lower for word in focus_phrase.split()):
        keywords.append(focus_phrase)
    for word in top_words(tokenize(text)):
        if len(keywords) >= MAX_KEYWORDS:
            break
        keyword = word.capitalize()
        if keyword not in keywords:
            keywords.append(keyword)
    if brand and brand not in keywords:
        keywords.append(brand)
    return keywords


def provision_file(path: Path, brand: str, focus_phrase: str, dry_run: bool = False) -> list[str] | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        print(f"Warning: skipping invalid JSON: {path}")
        return None
    if not isinstance(data, dict):
        return None
    schema_type = data.get("@type") or data.get("type")
    types = set(schema_type) if isinstance(schema_type, list) else {schema_type}
    if not types & KEYWORD_TYPES or has_keywords(data):
        return None
    keywords = build_keywords(schema_text(data), brand, focus_phrase)
    data["keywords"] = keywords
    if not dry_run:
        dump_json(path, data)
    return keywords


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Add keywords to schema data files that have none.")
    parser.add_argument("--root", default=".", help="Project root containing site.config.json")
    parser.add_argument("--schemas-dir", default="", help="Schema data directory (default: <root>/data/schemas)")
    parser.add_argument("--brand", default="", help="Keyword always appended (default: config brandKeyword)")
    parser.add_argument("--focus-phrase", default=DEFAULT_FOCUS_PHRASE, help="Phrase prepended when its words appear")
    parser.add_argument("--dry-run", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.root)
    except ConfigError as exc:
        print(f"Error: {exc}")
        return 2
    schemas_dir = Path(args.schemas_dir).resolve() if args.schemas_dir else config.schemas_dir
    if not schemas_dir.is_dir():
        print(f"Error: schemas directory not found: {schemas_dir}")
        return 2

    updated = 0
    for path in sorted(schemas_dir.rglob("*.json")):
        keywords = provision_file(path, args.brand or config.brand_keyword, args.focus_phrase, args.dry_run)
        if keywords is None:
            continue
        updated += 1
        print(f"  {rel_posix(path, schemas_dir)}: {', '.join(keywords)}")
    verb = "Would update" if args.dry_run else "Updated"
    print(f"{verb} {updated} file(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
