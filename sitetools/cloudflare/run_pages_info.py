#!/usr/bin/env python3
"""
List Cloudflare Pages projects with their domains and analytics flag.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from ..common import write_summary
from ..config import ConfigError, load_config
from .client import CloudflareClient, CloudflareError


def project_row(account_id: str, project: dict[str, Any]) -> dict[str, Any]:
    return {
        "account_id": account_id,
        "name": project.get("name", ""),
        "subdomain": project.get("subdomain", ""),
        "domains": list(project.get("domains") or []),
        "web_analytics_enabled": bool(project.get("web_analytics_enabled")),
    }


def collect_projects(client: CloudflareClient, account_ids: list[str]) -> list[dict[str, Any]]:
    rows = []
    for account_id in account_ids:
        for project in client.list_pages_projects(account_id):
            rows.append(project_row(account_id, project))
    return rows


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="List Cloudflare Pages projects.")
    parser.add_argument("--root", default=".", help="Project root containing site.config.json")
    parser.add_argument("--all-accounts", action="store_true", help="Ignore the configured account and list every account")
    parser.add_argument("--output-dir", default="pages-info-output")
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
        if config.account_id and not args.all_accounts:
            account_ids = [config.account_id]
        else:
            account_ids = [str(account["id"]) for account in client.list_accounts()]
        rows = collect_projects(client, account_ids)
    except CloudflareError as exc:
        print(f"Error: {exc}")
        return 1

    for row in rows:
        domains = ", ".join(row["domains"]) or "-"
        print(f"{row['name']}: {row['subdomain'] or '-'} [{domains}] web_analytics_enabled={row['web_analytics_enabled']}")
    summary_path = write_summary(Path(args.output_dir).resolve(), {"accounts": account_ids, "projects": rows})
    print(f"Projects: {len(rows)}")
    print(f"Summary: {summary_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
