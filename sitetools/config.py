"""
Site-wide tooling configuration.

Values come from site.config.json at the project root, then environment
variables (optionally loaded from a .env file) override them.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from dotenv import load_dotenv

from .common import SiteToolsError, canonical_host

CONFIG_FILENAME = "site.config.json"
DEFAULT_PRODUCTION_URL = "https://www.example.com"
DEFAULT_LOCAL_URL = "http://localhost:8000"
DEFAULT_TIMEOUT_MS = 30000


class ConfigError(SiteToolsError):
    pass


@dataclass(frozen=True)
class ToolingConfig:
    root: Path
    site_name: str = "Example Site"
    production_url: str = DEFAULT_PRODUCTION_URL
    domain: str = "example.com"
    local_url: str = DEFAULT_LOCAL_URL
    project_name: str = ""
    account_id: str = ""
    zone_id: str = ""
    api_token: str = ""
    test_base_url: str = DEFAULT_LOCAL_URL
    test_timeout_ms: int = DEFAULT_TIMEOUT_MS
    canonical_base: str = DEFAULT_PRODUCTION_URL
    brand_keyword: str = ""
    generic_title: str = ""
    theme_storage_key: str = "theme"
    organization: dict[str, Any] = field(default_factory=dict)

    @property
    def public_dir(self) -> Path:
        return self.root / "public"

    @property
    def dist_dir(self) -> Path:
        return self.root / "dist"

    @property
    def schemas_dir(self) -> Path:
        return self.root / "data" / "schemas"

    @property
    def content_dir(self) -> Path:
        return self.root / "content"


def first_env(*names: str) -> str:
    for name in names:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return ""


def read_site_config(root: Path) -> dict[str, Any]:
    path = root / CONFIG_FILENAME
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path} is not valid JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    return data


def load_config(root: str | Path = ".", env_file: str | Path | None = None) -> ToolingConfig:
    root_path = Path(root).resolve()
    env_path = Path(env_file) if env_file else root_path / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)

    data = read_site_config(root_path)
    production_url = (first_env("PRODUCTION_URL") or data.get("productionUrl") or DEFAULT_PRODUCTION_URL).rstrip("/")
    domain = first_env("DOMAIN") or data.get("domain") or canonical_host(urlparse(production_url).hostname)
    site_name = data.get("siteName") or "Example Site"

    timeout_raw = first_env("TEST_TIMEOUT") or str(data.get("testTimeout") or DEFAULT_TIMEOUT_MS)
    try:
        timeout_ms = int(timeout_raw)
    except ValueError as exc:
        raise ConfigError(f"TEST_TIMEOUT must be an integer, got {timeout_raw!r}") from exc

    local_url = (first_env("LOCAL_URL") or data.get("localUrl") or DEFAULT_LOCAL_URL).rstrip("/")
    return ToolingConfig(
        root=root_path,
        site_name=site_name,
        production_url=production_url,
        domain=domain,
        local_url=local_url,
        project_name=first_env("CF_PROJECT_NAME") or data.get("projectName") or "",
        account_id=first_env("CLOUDFLARE_ACCOUNT_ID", "CF_ACCOUNT_ID") or data.get("accountId") or "",
        zone_id=first_env("CLOUDFLARE_ZONE_ID", "CF_ZONE_ID") or data.get("zoneId") or "",
        api_token=first_env("CLOUDFLARE_API_TOKEN", "CF_API_TOKEN"),
        test_base_url=(first_env("TEST_BASE_URL", "BASE_URL") or local_url).rstrip("/"),
        test_timeout_ms=timeout_ms,
        canonical_base=(first_env("CANONICAL_BASE") or data.get("canonicalBase") or production_url).rstrip("/"),
        brand_keyword=data.get("brandKeyword") or site_name,
        generic_title=data.get("genericTitle") or site_name,
        theme_storage_key=data.get("themeStorageKey") or "theme",
        organization=dict(data.get("organization") or {}),
    )
