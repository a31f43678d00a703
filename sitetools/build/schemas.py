"""
JSON-LD injection for built pages: per-page schema data files plus site-wide defaults.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from ..common import JSONLD_TYPE_RE, load_json, page_slug, soup_of
from ..config import ToolingConfig

SCHEMA_SUBDIRS = ("pages", "faqs", "breadcrumbs")
EXCLUDED_SCHEMA_RE = re.compile(
    r"-report\.json$|-candidates\.json$|completeness-report\.json$|^page-config\.json$", re.IGNORECASE
)
LDJSON_SCRIPT_RE = re.compile(r"<script[^>]*type\s*=\s*[\"']?application/ld\+json[\"']?", re.IGNORECASE)


def wrap_schema_tag(schema: dict[str, Any]) -> str:
    payload = json.dumps(schema, indent=2, ensure_ascii=False)
    return f'<script type="application/ld+json">\n{payload}\n</script>'


def organization_schema(config: ToolingConfig) -> dict[str, Any]:
    org = config.organization
    base = config.production_url
    schema: dict[str, Any] = {
        "@context": "https://schema.org",
        "@type": "Organization",
        "@id": f"{base}/#organization",
        "name": org.get("name") or config.site_name,
        "url": f"{base}/",
    }
    if org.get("description"):
        schema["description"] = org["description"]
    schema["logo"] = org.get("logo") or f"{base}/icons/icon.svg"
    if org.get("email"):
        schema["contactPoint"] = {"@type": "ContactPoint", "email": org["email"], "contactType": "Customer Support"}
    if org.get("sameAs"):
        schema["sameAs"] = list(org["sameAs"])
    return schema


def website_schema(config: ToolingConfig) -> dict[str, Any]:
    base = config.production_url
    return {
        "@context": "https://schema.org",
        "@type": "WebSite",
        "name": config.site_name,
        "url": f"{base}/",
        "potentialAction": {
            "@type": "SearchAction",
            "target": {"@type": "EntryPoint", "urlTemplate": f"{base}/search?q={{search_term_string}}"},
            "query-input": "required name=search_term_string",
        },
    }


def software_application_schema(config: ToolingConfig) -> dict[str, Any]:
    org = config.organization
    return {
        "@context": "https://schema.org",
        "@type": "SoftwareApplication",
        "name": config.site_name,
        "description": org.get("description") or config.site_name,
        "url": f"{config.production_url}/",
        "applicationCategory": "DeveloperApplication",
        "operatingSystem": "Any",
        "offers": {"@type": "Offer", "price": "0", "priceCurrency": "USD"},
    }


def default_schemas(config: ToolingConfig) -> list[dict[str, Any]]:
    return [organization_schema(config), website_schema(config), software_application_schema(config)]


def insert_before_head_end(content: str, snippet: str) -> str:
    if "</head>" in content:
        return content.replace("</head>", f"    {snippet}\n</head>", 1)
    return f"{content}\n{snippet}"


def inject_default_schemas(content: str, config: ToolingConfig) -> str:
    """Add Organization, WebSite, and SoftwareApplication blocks when a page has no JSON-LD at all."""
    if LDJSON_SCRIPT_RE.search(content):
        return content
    scripts = "\n    ".join(wrap_schema_tag(schema) for schema in default_schemas(config))
    return insert_before_head_end(content, scripts)


def load_page_schemas(page: str, schemas_dir: Path) -> list[dict[str, Any]]:
    pattern = re.compile(rf"^{re.escape(page)}(?:[-._].*)?\.json$")
    schemas: list[dict[str, Any]] = []
    for directory in [schemas_dir / sub for sub in SCHEMA_SUBDIRS] + [schemas_dir]:
        if not directory.is_dir():
            continue
        for path in sorted(directory.glob("*.json")):
            if EXCLUDED_SCHEMA_RE.search(path.name) or not pattern.match(path.name):
                continue
            try:
                data = load_json(path)
            except json.JSONDecodeError as exc:
                print(f"Warning: skipping invalid schema file {path}: {exc}")
                continue
            if isinstance(data, dict):
                schemas.append(data)
    return schemas


def existing_schema_payloads(content: str) -> list[Any]:
    payloads: list[Any] = []
    for script in soup_of(content).find_all("script", attrs={"type": JSONLD_TYPE_RE}):
        try:
            payloads.append(json.loads(script.string or script.get_text() or ""))
        except json.JSONDecodeError:
            continue
    return payloads


def inject_page_schemas(rel_path: str, content: str, schemas_dir: Path) -> str:
    schemas = load_page_schemas(page_slug(rel_path), schemas_dir)
    if not schemas:
        return content
    present = existing_schema_payloads(content)
    for schema in schemas:
        if schema in present:
            continue
        content = insert_before_head_end(content, wrap_schema_tag(schema))
        present.append(schema)
    return content
