from __future__ import annotations

import json
from pathlib import Path

import pytest

from .helpers import write

CONFIG_ENV = (
    "CF_PROJECT_NAME",
    "PRODUCTION_URL",
    "DOMAIN",
    "LOCAL_URL",
    "CLOUDFLARE_ACCOUNT_ID",
    "CF_ACCOUNT_ID",
    "CLOUDFLARE_ZONE_ID",
    "CF_ZONE_ID",
    "CLOUDFLARE_API_TOKEN",
    "CF_API_TOKEN",
    "TEST_BASE_URL",
    "BASE_URL",
    "TEST_TIMEOUT",
    "CANONICAL_BASE",
    "GITHUB_SHA",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv first so teardown also removes values a test's .env file loads
    for name in CONFIG_ENV:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project root with a site config and an empty public/ directory."""
    config = {
        "siteName": "Acme Tools",
        "productionUrl": "https://www.acme.test",
        "themeStorageKey": "acme-theme",
        "organization": {"name": "Acme Inc", "email": "hello@acme.test"},
        "cssBundles": {
            "critical": ["css/critical.css"],
            "common": ["css/base.css"],
            "pages": {"blog": ["css/pages/blog.css"]},
            "deferred": {},
        },
    }
    write(tmp_path / "site.config.json", json.dumps(config))
    (tmp_path / "public").mkdir()
    return tmp_path
