#!/usr/bin/env python3
"""
Inspect or disable Cloudflare Web Analytics auto-injection for the site.

Commands:
  status   show matching analytics sites, the zone config and the Pages project flag
  disable  turn off auto_install on matching sites and web_analytics_enabled on the Pages project
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from ..common import canonical_host
from ..config import ConfigError, ToolingConfig, load_config
from .client import CloudflareClient, CloudflareError


def site_hosts(site: dict[str, Any]) -> set[str]:
    ruleset = site.get("ruleset") or {}
    candidates = [site.get("host"), site.get("site_name"), ruleset.get("zone_name")]
    return {canonical_host(str(c)) for c in candidates if c}


def matching_sites(sites: list[dict[str, Any]], domain: str) -> list[dict[str, Any]]:
    apex = canonical_host(domain)
    return [site for site in sites if apex in site_hosts(site)]


def resolve_account_id(client: CloudflareClient, config: ToolingConfig) -> str:
    if config.account_id:
        return config.account_id
    accounts = client.list_accounts()
    if not accounts:
        raise CloudflareError("no accounts visible to this API token")
    return str(accounts[0]["id"])


def collect_status(client: CloudflareClient, config: ToolingConfig, account_id: str) -> dict[str, Any]:
    sites = matching_sites(client.list_web_analytics_sites(account_id), config.domain)
    zone_id = config.zone_id
    if not zone_id:
        zone = client.get_zone(config.domain)
        zone_id = str(zone["id"]) if zone else ""
    status: dict[str, Any] = {
        "account_id": account_id,
        "domain": config.domain,
        "sites": [{"site_tag": s.get("site_tag"), "auto_install": bool(s.get("auto_install"))} for s in sites],
        "zone_config": client.get_zone_web_analytics(zone_id) if zone_id else None,
        "pages_project": None,
    }
    if config.project_name:
        project = client.get_pages_project(account_id, config.project_name)
        status["pages_project"] = {
            "name": config.project_name,
            "web_analytics_enabled": bool((project or {}).get("web_analytics_enabled")),
        }
    return status


def disable(client: CloudflareClient, account_id: str, status: dict[str, Any], dry_run: bool) -> list[str]:
    actions = []
    for site in status["sites"]:
        if not site["auto_install"]:
            continue
        actions.append(f"disable auto_install on site {site['site_tag']}")
        if not dry_run:
            client.patch_web_analytics_site(account_id, site["site_tag"], {"auto_install": False})
    project = status["pages_project"]
    if project and project["web_analytics_enabled"]:
        actions.append(f"disable web analytics on Pages project {project['name']}")
        if not dry_run:
            client.patch_pages_project(account_id, project["name"], {"web_analytics_enabled": False})
    return actions


def print_status(status: dict[str, Any]) -> None:
    print(f"Domain: {status['domain']}")
    if not status["sites"]:
        print("Web Analytics sites: none")
    for site in status["sites"]:
        state = "ENABLED" if site["auto_install"] else "disabled"
        print(f"  site {site['site_tag']}: auto_install {state}")
    print(f"Zone analytics config: {'none' if status['zone_config'] is None else json.dumps(status['zone_config'])}")
    project = status["pages_project"]
    if project:
        print(f"Pages project {project['name']}: web_analytics_enabled={project['web_analytics_enabled']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Show or disable Cloudflare Web Analytics auto-injection.")
    parser.add_argument("command", choices=["status", "disable"])
    parser.add_argument("--root", default=".", help="Project root containing site.config.json")
    parser.add_argument("--dry-run", action="store_true", help="Print the changes without applying them")
    return parser


def main(argv: list[str] | None = None, client: CloudflareClient | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.root)
        client = client or CloudflareClient(config.api_token)
    except (ConfigError, CloudflareError) as exc:
        print(f"Error: {exc}")
        return 2

    try:
        account_id = resolve_account_id(client, config)
        status = collect_status(client, config, account_id)
        print_status(status)
        if args.command == "disable":
            actions = disable(client, account_id, status, args.dry_run)
            prefix = "Would " if args.dry_run else ""
            for action in actions:
                print(f"{prefix}{action}")
            if not actions:
                print("Nothing to disable")
    except CloudflareError as exc:
        print(f"Error: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
