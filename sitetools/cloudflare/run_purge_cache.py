#!/usr/bin/env python3
"""
Purge Cloudflare cache for specific URLs or the whole zone.
"""

from __future__ import annotations

import argparse

from ..common import split_csv
from ..config import ConfigError, ToolingConfig, load_config
from .client import CloudflareClient, CloudflareError


def absolute_urls(raw: list[str], production_url: str) -> list[str]:
    base = production_url.rstrip("/")
    urls = []
    for item in raw:
        if item.startswith(("http://", "https://")):
            urls.append(item)
        else:
            urls.append(f"{base}/{item.lstrip('/')}")
    return urls


def resolve_zone_id(client: CloudflareClient, config: ToolingConfig, zone_name: str = "") -> str:
    if config.zone_id and not zone_name:
        return config.zone_id
    name = zone_name or config.domain
    zone = client.get_zone(name)
    if not zone:
        raise CloudflareError(f"zone not found: {name}")
    return str(zone["id"])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Purge the Cloudflare cache.")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--urls", default="", help="Comma-separated URLs or paths to purge")
    target.add_argument("--everything", action="store_true", help="Purge the entire zone")
    parser.add_argument("--zone", default="", help="Zone name to look up (default: configured zone id or domain)")
    parser.add_argument("--root", default=".", help="Project root containing site.config.json")
    return parser


def main(argv: list[str] | None = None, client: CloudflareClient | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.root)
        client = client or CloudflareClient(config.api_token)
    except (ConfigError, CloudflareError) as exc:
        print(f"Error: {exc}")
        return 2

    urls = absolute_urls(split_csv(args.urls), config.production_url)
    if not args.everything and not urls:
        print("Error: --urls must name at least one URL")
        return 2

    try:
        zone_id = resolve_zone_id(client, config, args.zone)
        if args.everything:
            client.purge_everything(zone_id)
            print(f"Purged everything in zone {zone_id}")
        else:
            batches = client.purge_files(zone_id, urls)
            for url in urls:
                print(f"  {url}")
            print(f"Purged {len(urls)} URL(s) in {batches} request(s)")
    except CloudflareError as exc:
        print(f"Error: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
