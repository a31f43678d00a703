#!/usr/bin/env python3
"""
Shared headless-Chromium driver for the browser checks.

Playwright is optional: when it cannot be imported the run reports
status "not_available"; when the browser fails to start it reports "failed".
"""

from __future__ import annotations

from typing import Any, Callable
from urllib.parse import urljoin

PLAYWRIGHT_HINT = "Playwright unavailable. Install with: pip install playwright && python -m playwright install chromium"
DEFAULT_VIEWPORT = {"width": 1280, "height": 800}

Visit = Callable[[Any, str, int], dict[str, Any]]


def page_url(base_url: str, path: str) -> str:
    return urljoin(base_url.rstrip("/") + "/", path.lstrip("/"))


def visit_pages(
    base_url: str,
    paths: list[str],
    visit: Visit,
    timeout_ms: int = 30000,
    viewport: dict[str, int] | None = None,
) -> dict[str, Any]:
    """Open each path in a fresh page and collect what ``visit(page, url, timeout_ms)`` returns."""
    out: dict[str, Any] = {"status": "skipped", "reason": "", "pages": []}
    try:
        from playwright.sync_api import Error as PlaywrightError
        from playwright.sync_api import sync_playwright
    except Exception:
        out["status"] = "not_available"
        out["reason"] = PLAYWRIGHT_HINT
        return out

    try:
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(headless=True)
            try:
                context = browser.new_context(viewport=viewport or DEFAULT_VIEWPORT)
                for path in paths:
                    url = page_url(base_url, path)
                    page = context.new_page()
                    try:
                        result = visit(page, url, timeout_ms)
                    except PlaywrightError as exc:
                        result = {"error": str(exc)}
                    finally:
                        page.close()
                    out["pages"].append({"path": path, "url": url, **result})
                context.close()
            finally:
                browser.close()
        out["status"] = "ok"
    except Exception as exc:
        out["status"] = "failed"
        out["reason"] = str(exc)
    return out
