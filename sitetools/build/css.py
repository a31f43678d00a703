"""
CSS bundling: resolve @imports, concatenate bundles, minify, and content-hash.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import csscompressor

IMPORT_RE = re.compile(r"""@import\s+url\(['"]?([^'")\s]+)['"]?\);?""")
HASH_LENGTH = 8

DEFAULT_CRITICAL = [
    "css/critical-base.css",
    "css/global/header.css",
    "css/utilities.css",
]
DEFAULT_COMMON = [
    "css/base.css",
    "css/layout.css",
    "css/components/buttons.css",
    "css/components-common.css",
    "css/global/footer.css",
    "css/global/community-section.css",
]
DEFAULT_PAGES = {
    "index": ["css/pages/index/hero.css", "css/hero-decorations.css", "css/pages/index/hero-animations.css"],
    "pricing": ["css/pages/pricing/index.css"],
    "blog": [
        "css/pages/blog/header.css",
        "css/pages/blog/index.css",
        "css/pages/blog/card.css",
        "css/pages/blog/post.css",
    ],
    "subscribe": ["css/pages/subscribe/hero.css", "css/pages/subscribe/form.css"],
    "product": ["css/pages/product.css"],
    "about": ["css/pages/about.css"],
    "migrate": ["css/pages/migrate.css"],
    "case-studies": ["css/pages/case-studies.css"],
    "community": ["css/pages/community.css"],
}
DEFAULT_DEFERRED = {
    "index-deferred": [
        "css/components-page-specific.css",
        "css/pages/index/features.css",
        "css/pages/index/cta.css",
        "css/pages/index.css",
    ],
}


@dataclass
class CssBundles:
    critical: list[str] = field(default_factory=lambda: list(DEFAULT_CRITICAL))
    common: list[str] = field(default_factory=lambda: list(DEFAULT_COMMON))
    pages: dict[str, list[str]] = field(default_factory=lambda: dict(DEFAULT_PAGES))
    deferred: dict[str, list[str]] = field(default_factory=lambda: dict(DEFAULT_DEFERRED))

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "CssBundles":
        bundles = cls()
        if not data:
            return bundles
        if "critical" in data:
            bundles.critical = list(data["critical"])
        if "common" in data:
            bundles.common = list(data["common"])
        if "pages" in data:
            bundles.pages = {str(k): list(v) for k, v in data["pages"].items()}
        if "deferred" in data:
            bundles.deferred = {str(k): list(v) for k, v in data["deferred"].items()}
        return bundles


def short_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def minify_css(content: str) -> str:
    return csscompressor.compress(content)


def resolve_imports(css: str, base_dir: Path, seen: frozenset[Path] = frozenset()) -> str:
    def replace(match: re.Match[str]) -> str:
        target = (base_dir / match.group(1)).resolve()
        if target in seen:
            print(f"Warning: circular @import skipped: {target}")
            return ""
        if target.is_file():
            imported = target.read_text(encoding="utf-8")
            return resolve_imports(imported, target.parent, seen | {target})
        print(f"Warning: import file not found: {target}")
        return match.group(0)

    return IMPORT_RE.sub(replace, css)


def bundle_files(files: list[str], label: str, source_dir: Path) -> str:
    parts: list[str] = []
    for rel in files:
        path = source_dir / rel
        if not path.is_file():
            print(f"Warning: {label} CSS file not found: {rel}")
            continue
        css = path.read_text(encoding="utf-8")
        parts.append(resolve_imports(css, path.parent, frozenset({path.resolve()})))
    return "".join(part + "\n" for part in parts)


def write_hashed_css(content: str, base_name: str, dist: Path, manifest: dict[str, str]) -> str:
    minified = minify_css(content)
    file_name = f"{base_name}.{short_hash(minified)}.css"
    dist.mkdir(parents=True, exist_ok=True)
    (dist / file_name).write_text(minified, encoding="utf-8")
    manifest[f"{base_name}.css"] = file_name
    print(f"  {base_name} CSS: {len(minified)} bytes -> {file_name}")
    return minified


def bundle_css(source_dir: Path, dist: Path, bundles: CssBundles | None = None) -> dict[str, str]:
    """Write page, deferred, critical, and common bundles; return the CSS manifest."""
    bundles = bundles or CssBundles()
    manifest: dict[str, str] = {}

    for page, files in bundles.pages.items():
        write_hashed_css(bundle_files(files, page, source_dir), f"styles-{page}", dist, manifest)
    for name, files in bundles.deferred.items():
        write_hashed_css(bundle_files(files, name, source_dir), f"styles-{name}", dist, manifest)

    critical = minify_css(bundle_files(bundles.critical, "critical", source_dir))
    dist.mkdir(parents=True, exist_ok=True)
    (dist / "critical.css").write_text(critical, encoding="utf-8")
    print(f"  critical CSS: {len(critical)} bytes")

    write_hashed_css(bundle_files(bundles.common, "common", source_dir), "styles", dist, manifest)
    return manifest


def minify_css_files(source_dir: Path, dist: Path) -> list[str]:
    """Minify top-level css/*.css into dist/css without hashing."""
    css_dir = source_dir / "css"
    written: list[str] = []
    if not css_dir.is_dir():
        return written
    out_dir = dist / "css"
    out_dir.mkdir(parents=True, exist_ok=True)
    for path in sorted(css_dir.glob("*.css")):
        (out_dir / path.name).write_text(minify_css(path.read_text(encoding="utf-8")), encoding="utf-8")
        written.append(f"css/{path.name}")
    return written
