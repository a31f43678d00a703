from __future__ import annotations

import pytest

from sitetools.config import ConfigError, load_config

from .helpers import write


def test_defaults_without_site_config(tmp_path):
    config = load_config(tmp_path)
    assert config.production_url == "https://www.example.com"
    assert config.domain == "example.com"
    assert config.test_base_url == "http://localhost:8000"
    assert config.test_timeout_ms == 30000
    assert config.canonical_base == config.production_url
    assert config.public_dir == tmp_path.resolve() / "public"


def test_site_config_values(project):
    config = load_config(project)
    assert config.site_name == "Acme Tools"
    assert config.production_url == "https://www.acme.test"
    assert config.domain == "acme.test"
    assert config.theme_storage_key == "acme-theme"
    assert config.brand_keyword == "Acme Tools"
    assert config.organization["name"] == "Acme Inc"


def test_environment_overrides_site_config(project, monkeypatch):
    monkeypatch.setenv("CANONICAL_BASE", "https://cdn.acme.test/")
    monkeypatch.setenv("CF_ZONE_ID", "zone-123")
    monkeypatch.setenv("BASE_URL", "http://127.0.0.1:9000/")
    config = load_config(project)
    assert config.canonical_base == "https://cdn.acme.test"
    assert config.zone_id == "zone-123"
    assert config.test_base_url == "http://127.0.0.1:9000"


def test_dotenv_fills_missing_values_only(project, monkeypatch):
    write(project / ".env", "CLOUDFLARE_API_TOKEN=from-file\nCF_PROJECT_NAME=acme-site\n")
    monkeypatch.setenv("CLOUDFLARE_API_TOKEN", "from-env")
    config = load_config(project)
    assert config.api_token == "from-env"
    assert config.project_name == "acme-site"


def test_invalid_site_config_raises(tmp_path):
    write(tmp_path / "site.config.json", "{not json")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_non_object_site_config_raises(tmp_path):
    write(tmp_path / "site.config.json", "[1, 2]")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_bad_timeout_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("TEST_TIMEOUT", "soon")
    with pytest.raises(ConfigError):
        load_config(tmp_path)
