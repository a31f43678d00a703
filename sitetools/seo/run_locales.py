#!/usr/bin/env python3
"""
Generate localized landing pages from content/i18n/<locale>.json.

Each dictionary entry maps a page slug to {"title", "meta", "faq"?}; the
optional faq list holds {"q", "a"} pairs rendered as FAQPage JSON-LD.
"""

from __future__ import annotations

import argparse
import html
import json
from pathlib import Path
from typing import Any

from ..common import load_json, write_if_changed
from ..config import ConfigError, load_config

RTL_LOCALES = {"ar", "he", "fa"}
BACK_LABELS = {
    "de": "Zurück",
    "it": "Indietro",
    "es": "Volver",
    "es-419": "Volver",
    "fr": "Retour",
    "pt": "Voltar",
    "br": "Voltar",
    "ar": "العودة",
    "he": "חזרה",
    "fa": "بازگشت",
}


def faq_schema(entries: list[dict[str, Any]]) -> dict[str, Any] | None:
    questions = []
    for item in entries:
        if not isinstance(item, dict):
            continue
        question = item.get("q") or item.get("question")
        answer = item.get("a") or item.get("answer")
        if question and answer:
            questions.append(
                {
                    "@type": "Question",
                    "name": str(question),
                    "acceptedAnswer": {"@type": "Answer", "text": str(answer)},
                }
            )
    if not questions:
        return None
    return {"@context": "https://schema.org", "@type": "FAQPage", "mainEntity": questions}


def render_page(locale: str, slug: str, entry: dict[str, Any], base_url: str) -> str:
    base = base_url.rstrip("/")
    lang = locale.split("-")[0]
    rtl = lang in RTL_LOCALES
    title = html.escape(str(entry.get("title") or slug))
    description = html.escape(str(entry.get("meta") or ""))
    canonical = f"{base}/i18n/{locale}/{slug}"
    back = BACK_LABELS.get(locale, BACK_LABELS.get(lang, "Back"))

    head = [
        '<meta charset="utf-8">',
        '<meta name="viewport" content="width=device-width,initial-scale=1">',
        f"<title>{title}</title>",
        f'<meta name="description" content="{description}">',
        f'<link rel="canonical" href="{canonical}">',
        f'<link rel="alternate" hreflang="{locale}" href="{canonical}">',
        f'<link rel="alternate" hreflang="x-default" href="{base}/{slug}">',
    ]
    if rtl:
        head.append('<link rel="stylesheet" href="/css/rtl.css">')
    schema = faq_schema(entry.get("faq") or [])
    if schema:
        payload = json.dumps(schema, indent=2, ensure_ascii=False)
        head.append(f'<script type="application/ld+json">\n{payload}\n</script>')

    dir_attr = ' dir="rtl"' if rtl else ""
    head_html = "\n  ".join(head)
    return f"""<!doctype html>
<html lang="{lang}"{dir_attr}>
<head>
  {head_html}
</head>
<body>
  <main id="main-content">
    <h1>{title}</h1>
    <p>{description}</p>
    <p><a href="/">{html.escape(back)}</a></p>
  </main>
</body>
</html>
"""


def load_dictionary(path: Path) -> dict[str, dict[str, Any]]:
    data = load_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object keyed by page slug")
    return {str(slug): entry for slug, entry in data.items() if isinstance(entry, dict)}


def apply_locale(locale: str, dictionary: dict[str, dict[str, Any]], site_dir: Path, base_url: str) -> list[str]:
    out_dir = site_dir / "i18n" / locale
    written = []
    for slug, entry in dictionary.items():
        path = out_dir / f"{slug}.html"
        write_if_changed(path, render_page(locale, slug, entry, base_url))
        written.append(f"i18n/{locale}/{slug}.html")
    return written


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate localized pages for one locale.")
    parser.add_argument("--locale", required=True, help="Locale code, e.g. de or es-419")
    parser.add_argument("--root", default=".", help="Project root containing site.config.json")
    parser.add_argument("--site-dir", default="", help="Output HTML root (default: <root>/public)")
    parser.add_argument("--base-url", default="", help="Canonical base URL (default from config)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.root)
    except ConfigError as exc:
        print(f"Error: {exc}")
        return 2
    dictionary_path = config.content_dir / "i18n" / f"{args.locale}.json"
    if not dictionary_path.exists():
        print(f"Error: locale file not found: {dictionary_path}")
        return 2
    try:
        dictionary = load_dictionary(dictionary_path)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 2

    site_dir = Path(args.site_dir).resolve() if args.site_dir else config.public_dir
    written = apply_locale(args.locale, dictionary, site_dir, args.base_url or config.canonical_base)
    for rel in written:
        print(f"  {rel}")
    print(f"Localized pages written: {len(written)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
