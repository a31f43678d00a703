"""
JavaScript minification and content hashing.
"""

from __future__ import annotations

from pathlib import Path

import rjsmin

from .css import short_hash


def process_js(source_dir: Path, dist: Path) -> dict[str, str]:
    """Minify js/**/*.js into dist with hashed names; return the JS manifest."""
    js_dir = source_dir / "js"
    manifest: dict[str, str] = {}
    if not js_dir.is_dir():
        return manifest
    for path in sorted(js_dir.rglob("*.js")):
        rel = path.relative_to(js_dir)
        minified = rjsmin.jsmin(path.read_text(encoding="utf-8"))
        hashed_rel = rel.with_name(f"{rel.stem}.{short_hash(minified)}.js")
        target = dist / "js" / hashed_rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(minified, encoding="utf-8")
        manifest[f"js/{rel.as_posix()}"] = f"js/{hashed_rel.as_posix()}"
    print(f"  JS files processed: {len(manifest)}")
    return manifest
