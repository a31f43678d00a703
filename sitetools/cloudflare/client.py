#!/usr/bin/env python3
"""
Minimal Cloudflare API v4 client built on requests.

Every response is the standard envelope {"success", "errors", "messages", "result"};
``request`` unwraps ``result`` or raises ``CloudflareError``.
"""

from __future__ import annotations

import time
from typing import Any, Callable

import requests

from ..common import SiteToolsError

API_BASE = "https://api.cloudflare.com/client/v4"
RETRY_STATUSES = {503}
RETRY_DELAYS = (0.1, 0.2, 0.4)
PURGE_BATCH_SIZE = 30
DEFAULT_TIMEOUT = 30


class CloudflareError(SiteToolsError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def error_message(payload: dict[str, Any]) -> str:
    messages = []
    for err in payload.get("errors") or []:
        if isinstance(err, dict):
            code = err.get("code")
            text = err.get("message") or "unknown error"
            messages.append(f"{text} (code {code})" if code else text)
        else:
            messages.append(str(err))
    return "; ".join(messages) or "API request failed"


def chunked(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class CloudflareClient:
    def __init__(
        self,
        token: str,
        session: requests.Session | None = None,
        base_url: str = API_BASE,
        timeout: int = DEFAULT_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not token:
            raise CloudflareError("Cloudflare API token is required (CLOUDFLARE_API_TOKEN)")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.sleep = sleep
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {token}", "Content-Type": "application/json"})

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        attempt = 0
        while True:
            try:
                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.exceptions.ConnectionError as exc:
                if attempt >= len(RETRY_DELAYS):
                    raise CloudflareError(f"{method} {url} failed: {exc}") from exc
            except requests.exceptions.RequestException as exc:
                raise CloudflareError(f"{method} {url} failed: {exc}") from exc
            else:
                if response.status_code not in RETRY_STATUSES or attempt >= len(RETRY_DELAYS):
                    return response
            self.sleep(RETRY_DELAYS[attempt])
            attempt += 1

    def request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        response = self._send(method, url, **kwargs)
        try:
            payload = response.json()
        except ValueError as exc:
            raise CloudflareError(
                f"{method} {path}: non-JSON response (HTTP {response.status_code})", response.status_code
            ) from exc
        if not isinstance(payload, dict) or "success" not in payload:
            raise CloudflareError(f"{method} {path}: unexpected response shape", response.status_code)
        if not payload["success"]:
            raise CloudflareError(f"{method} {path}: {error_message(payload)}", response.status_code)
        return payload.get("result")

    # Zones

    def get_zone(self, name: str) -> dict[str, Any] | None:
        zones = self.request("GET", "zones", params={"name": name}) or []
        return zones[0] if zones else None

    def list_zones(self) -> list[dict[str, Any]]:
        return self.request("GET", "zones", params={"per_page": 50}) or []

    def purge_files(self, zone_id: str, urls: list[str]) -> int:
        """Purge URLs in batches the API accepts; returns the number of requests sent."""
        batches = chunked(urls, PURGE_BATCH_SIZE)
        for batch in batches:
            self.request("POST", f"zones/{zone_id}/purge_cache", json={"files": batch})
        return len(batches)

    def purge_everything(self, zone_id: str) -> None:
        self.request("POST", f"zones/{zone_id}/purge_cache", json={"purge_everything": True})

    def get_zone_web_analytics(self, zone_id: str) -> dict[str, Any] | None:
        try:
            return self.request("GET", f"zones/{zone_id}/web_analytics/config")
        except CloudflareError as exc:
            if exc.status_code == 404:
                return None
            raise

    # Accounts

    def list_accounts(self) -> list[dict[str, Any]]:
        return self.request("GET", "accounts") or []

    def list_pages_projects(self, account_id: str) -> list[dict[str, Any]]:
        return self.request("GET", f"accounts/{account_id}/pages/projects") or []

    def get_pages_project(self, account_id: str, name: str) -> dict[str, Any]:
        return self.request("GET", f"accounts/{account_id}/pages/projects/{name}")

    def patch_pages_project(self, account_id: str, name: str, body: dict[str, Any]) -> dict[str, Any]:
        return self.request("PATCH", f"accounts/{account_id}/pages/projects/{name}", json=body)

    def list_web_analytics_sites(self, account_id: str) -> list[dict[str, Any]]:
        return self.request("GET", f"accounts/{account_id}/rum/site_info/list") or []

    def patch_web_analytics_site(self, account_id: str, site_tag: str, body: dict[str, Any]) -> dict[str, Any]:
        return self.request("PATCH", f"accounts/{account_id}/rum/site_info/{site_tag}", json=body)
