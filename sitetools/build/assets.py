"""
Static asset copying and build metadata.
"""

from __future__ import annotations

import json
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .. import __version__

ROOT_FILES = [
    "robots.txt",
    "sitemap.xml",
    "site.webmanifest",
    "favicon.svg",
    "favicon.ico",
    "_redirects",
    "_headers",
    "_routes.json",
    "404.html",
]
COPY_DIRS = ["icons", "demo", "images"]


def copy_assets(source_dir: Path, dist: Path) -> list[str]:
    copied: list[str] = []
    dist.mkdir(parents=True, exist_ok=True)

    for name in ROOT_FILES:
        src = source_dir / name
        if src.is_file():
            shutil.copy2(src, dist / name)
            copied.append(name)

    for name in COPY_DIRS:
        src = source_dir / name
        if src.is_dir():
            shutil.copytree(src, dist / name, dirs_exist_ok=True)
            copied.append(f"{name}/")

    downloads = source_dir / "downloads"
    if downloads.is_dir():
        for path in sorted(downloads.glob("*.zip")):
            (dist / "downloads").mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, dist / "downloads" / path.name)
            copied.append(f"downloads/{path.name}")

    config_dir = source_dir / "config"
    if config_dir.is_dir():
        for path in sorted(config_dir.glob("*.json")):
            (dist / "config").mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, dist / "config" / path.name)
            copied.append(f"config/{path.name}")

    return copied


def build_info(version: str = __version__) -> dict[str, Any]:
    return {
        "buildTime": datetime.now(timezone.utc).isoformat(),
        "version": version,
        "commit": os.environ.get("GITHUB_SHA") or "local-build",
    }


def write_build_info(dist: Path, version: str = __version__) -> Path:
    path = dist / "build-info.json"
    path.write_text(json.dumps(build_info(version), indent=2), encoding="utf-8")
    return path


def write_manifest(dist: Path, manifest: dict[str, str]) -> Path:
    path = dist / "asset-manifest.json"
    path.write_text(json.dumps(dict(sorted(manifest.items())), indent=2), encoding="utf-8")
    return path
