#!/usr/bin/env python3
"""
Build the static site from public/ into dist/.

Steps: clean, CSS bundles, HTML templating, CSS minification, JS hashing,
asset copy, manifest and build info, canonical fix, sitemap/robots, link check.
"""

from __future__ import annotations

import argparse
import shutil
from pathlib import Path
from typing import Any

from ..common import BuildError, write_summary
from ..config import ConfigError, load_config, read_site_config
from ..seo import run_link_check
from .assets import copy_assets, write_build_info, write_manifest
from .css import CssBundles, bundle_css, minify_css_files
from .html import HtmlContext, load_templates, process_html
from .js import process_js
from .run_fix_canonicals import fix_canonicals
from .run_sitemap import generate as generate_sitemap


def clean_dist(dist: Path) -> None:
    if dist.exists():
        shutil.rmtree(dist)
    dist.mkdir(parents=True, exist_ok=True)


def build_site(
    root: Path,
    public_dir: Path,
    dist: Path,
    templates_dir: Path,
    base_url: str = "",
    sitemap: bool = True,
) -> dict[str, Any]:
    config = load_config(root)
    if not public_dir.is_dir():
        raise BuildError(f"public directory not found: {public_dir}")
    base = (base_url or config.canonical_base).rstrip("/")

    print("[1/9] Cleaning dist")
    clean_dist(dist)

    print("[2/9] Bundling CSS")
    bundles = CssBundles.from_dict(read_site_config(root).get("cssBundles"))
    manifest = bundle_css(public_dir, dist, bundles)

    print("[3/9] Processing JS")
    manifest.update(process_js(public_dir, dist))

    print("[4/9] Processing HTML")
    critical_path = dist / "critical.css"
    ctx = HtmlContext(
        config=config,
        templates=load_templates(templates_dir),
        manifest=manifest,
        critical_css=critical_path.read_text(encoding="utf-8") if critical_path.exists() else "",
        schemas_dir=config.schemas_dir,
    )
    pages = process_html(public_dir, dist, ctx)
    for warning in ctx.warnings:
        print(f"Warning: {warning}")

    print("[5/9] Minifying stylesheets")
    minified = minify_css_files(public_dir, dist)

    print("[6/9] Copying assets")
    copied = copy_assets(public_dir, dist)

    print("[7/9] Writing manifest and build info")
    manifest_path = write_manifest(dist, manifest)
    info_path = write_build_info(dist)

    print("[8/9] Fixing canonical URLs")
    canonicals = fix_canonicals(dist, base)

    sitemap_result: dict[str, Any] = {}
    if sitemap:
        print("[9/9] Generating sitemap and robots.txt")
        sitemap_result = generate_sitemap(dist, config.content_dir, dist, base)

    return {
        "templated_pages": pages["templated"],
        "standalone_pages": pages["standalone"],
        "minified_css": minified,
        "copied_assets": copied,
        "manifest_entries": len(manifest),
        "manifest": str(manifest_path),
        "build_info": str(info_path),
        "canonicals_updated": len(canonicals),
        "sitemap": sitemap_result,
        "warnings": list(ctx.warnings),
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build the static site into dist/.")
    parser.add_argument("--root", default=".", help="Project root")
    parser.add_argument("--public-dir", default="", help="Source HTML/CSS/JS (default: <root>/public)")
    parser.add_argument("--dist-dir", default="", help="Output directory (default: <root>/dist)")
    parser.add_argument("--templates-dir", default="", help="SSI templates (default: <root>/templates)")
    parser.add_argument("--base-url", default="", help="Canonical base URL (default from config)")
    parser.add_argument("--no-sitemap", action="store_true", help="Skip sitemap.xml and robots.txt generation")
    parser.add_argument("--skip-link-check", action="store_true")
    parser.add_argument("--output-dir", default="", help="Report directory (default: <dist>/../build-report)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    root = Path(args.root).resolve()
    public_dir = Path(args.public_dir).resolve() if args.public_dir else root / "public"
    dist = Path(args.dist_dir).resolve() if args.dist_dir else root / "dist"
    templates_dir = Path(args.templates_dir).resolve() if args.templates_dir else root / "templates"
    out_dir = Path(args.output_dir).resolve() if args.output_dir else dist.parent / "build-report"

    try:
        result = build_site(root, public_dir, dist, templates_dir, args.base_url, sitemap=not args.no_sitemap)
    except ConfigError as exc:
        print(f"Error: {exc}")
        return 2
    except (BuildError, OSError) as exc:
        print(f"Error: build failed: {exc}")
        return 1

    code = 0
    if not args.skip_link_check:
        code, links = run_link_check.run(dist, out_dir)
        result["broken_links"] = len(links["broken_links"])
        if code:
            print(f"Error: {len(links['broken_links'])} broken link(s); see {out_dir / 'LINK-REPORT.md'}")

    summary_path = write_summary(out_dir, result)
    print(f"Templated pages: {len(result['templated_pages'])}")
    print(f"Standalone pages: {len(result['standalone_pages'])}")
    print(f"Manifest entries: {result['manifest_entries']}")
    print(f"Canonicals updated: {result['canonicals_updated']}")
    print(f"Summary: {summary_path}")
    return code


if __name__ == "__main__":
    raise SystemExit(main())
