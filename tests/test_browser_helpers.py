from __future__ import annotations

import sys
import types

import pytest
import requests

from sitetools.browser import run_console_check, run_layout_shift, run_seo_smoke
from sitetools.browser.run_console_check import collect_console_errors, failing_pages
from sitetools.browser.run_layout_shift import diff_snapshots
from sitetools.browser.run_seo_smoke import check_page_html, normalize_canonical, robots_has_sitemap, sitemap_has_root
from sitetools.browser.run_visual import head_snapshot, screenshot_name
from sitetools.browser.session import page_url, visit_pages

GOOD_PAGE = """<html><head>
<title>Pricing | Acme</title>
<meta name="description" content="Plans">
<meta property="og:title" content="Pricing">
<meta property="og:description" content="Plans">
<meta name="twitter:card" content="summary">
<link rel="canonical" href="https://www.acme.test/pricing.html">
<script type="application/ld+json">{"@context": "https://schema.org", "@type": "WebPage"}</script>
</head><body><h1>Pricing</h1></body></html>"""


class FakeError(Exception):
    pass


class FakePage:
    def __init__(self, url_log, fail=False):
        self.url_log = url_log
        self.fail = fail
        self.closed = False

    def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, url_log, fail_on):
        self.url_log = url_log
        self.fail_on = fail_on
        self.pages = []

    def new_page(self):
        page = FakePage(self.url_log, fail=len(self.pages) == self.fail_on)
        self.pages.append(page)
        return page

    def close(self):
        pass


class FakeBrowser:
    def __init__(self, context):
        self.context = context
        self.closed = False
        self.viewport = None

    def new_context(self, viewport):
        self.viewport = viewport
        return self.context

    def close(self):
        self.closed = True


def install_fake_playwright(monkeypatch, browser=None, launch_error=None):
    def launch(headless):
        if launch_error:
            raise launch_error
        return browser

    class Manager:
        chromium = types.SimpleNamespace(launch=launch)

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

    module = types.ModuleType("playwright.sync_api")
    module.sync_playwright = Manager
    module.Error = FakeError
    monkeypatch.setitem(sys.modules, "playwright", types.ModuleType("playwright"))
    monkeypatch.setitem(sys.modules, "playwright.sync_api", module)


def test_page_url_joins_paths():
    assert page_url("http://localhost:8788", "/about") == "http://localhost:8788/about"
    assert page_url("http://localhost:8788/", "blog/") == "http://localhost:8788/blog/"


def test_visit_pages_without_playwright(monkeypatch):
    monkeypatch.setitem(sys.modules, "playwright.sync_api", None)
    run = visit_pages("http://localhost", ["/"], lambda page, url, timeout: {})
    assert run["status"] == "not_available"
    assert "pip install playwright" in run["reason"]
    assert run["pages"] == []


def test_visit_pages_collects_results_and_navigation_errors(monkeypatch):
    urls = []
    context = FakeContext(urls, fail_on=1)
    browser = FakeBrowser(context)
    install_fake_playwright(monkeypatch, browser=browser)

    def visit(page, url, timeout_ms):
        if page.fail:
            raise FakeError("net::ERR_CONNECTION_REFUSED")
        urls.append((url, timeout_ms))
        return {"ok": True}

    run = visit_pages("http://localhost:8788", ["/", "/about"], visit, timeout_ms=5000)

    assert run["status"] == "ok"
    assert run["pages"] == [
        {"path": "/", "url": "http://localhost:8788/", "ok": True},
        {"path": "/about", "url": "http://localhost:8788/about", "error": "net::ERR_CONNECTION_REFUSED"},
    ]
    assert urls == [("http://localhost:8788/", 5000)]
    assert all(page.closed for page in context.pages)
    assert browser.closed
    assert browser.viewport == {"width": 1280, "height": 800}


def test_visit_pages_launch_failure(monkeypatch):
    install_fake_playwright(monkeypatch, launch_error=RuntimeError("Executable doesn't exist"))
    run = visit_pages("http://localhost", ["/"], lambda page, url, timeout: {})
    assert run["status"] == "failed"
    assert "Executable" in run["reason"]


def test_browser_mains_fail_when_browser_unavailable(project, monkeypatch):
    monkeypatch.setitem(sys.modules, "playwright.sync_api", None)
    out = project / "out"
    assert run_console_check.main(["--root", str(project), "--output-dir", str(out)]) == 1
    assert (out / "SUMMARY.json").is_file()
    assert run_layout_shift.main(["--root", str(project), "--settle-ms", "-5"]) == 2


def test_collect_console_errors_registers_listeners():
    class Message:
        def __init__(self, type_, text):
            self.type = type_
            self.text = text

    class ConsolePage:
        def __init__(self):
            self.handlers = {}
            self.waited = 0

        def on(self, event, handler):
            self.handlers[event] = handler

        def goto(self, url, wait_until, timeout):
            self.handlers["console"](Message("log", "hello"))
            self.handlers["console"](Message("error", "Uncaught TypeError"))
            self.handlers["pageerror"](ValueError("boom"))

        def wait_for_timeout(self, ms):
            self.waited = ms

    page = ConsolePage()
    result = collect_console_errors(page, "http://localhost/", 1000)
    assert result == {"errors": ["Uncaught TypeError", "boom"]}
    assert page.waited == 500


def test_failing_pages():
    run = {"pages": [{"path": "/", "errors": []}, {"path": "/a", "errors": ["x"]}, {"path": "/b", "error": "timeout"}]}
    assert [p["path"] for p in failing_pages(run)] == ["/a", "/b"]


def test_normalize_canonical():
    assert normalize_canonical("https://www.acme.test/index.html") == "https://www.acme.test"
    assert normalize_canonical("https://www.acme.test/pricing.html#plans") == "https://www.acme.test/pricing"
    assert normalize_canonical("https://www.acme.test/blog/") == "https://www.acme.test/blog"


def test_check_page_html_passes_complete_page():
    assert check_page_html(GOOD_PAGE, 200, "https://www.acme.test/pricing", "Acme") == []


def test_check_page_html_reports_problems():
    html = """<html><head><title>Acme</title>
<link rel="canonical" href="https://www.acme.test/other">
<script type="application/ld+json">{"@type": "WebPage"}</script>
<script type="application/ld+json">{broken</script>
</head><body></body></html>"""
    issues = check_page_html(html, 404, "https://www.acme.test/pricing", "Acme")
    titles = {i["title"] for i in issues}
    assert {
        "Bad HTTP status",
        "Missing description",
        "Missing og:title",
        "Missing twitter:card",
        "Canonical mismatch",
        "Incomplete JSON-LD",
        "Invalid JSON-LD",
        "Missing H1",
        "Generic title",
    } <= titles


def test_robots_and_sitemap_checks():
    assert robots_has_sitemap("User-agent: *\nAllow: /\nSitemap: https://www.acme.test/sitemap.xml\n")
    assert not robots_has_sitemap("User-agent: *\nDisallow:\n")
    xml = "<urlset><url><loc>https://www.acme.test/</loc></url><url><loc>https://www.acme.test/about</loc></url></urlset>"
    assert sitemap_has_root(xml, "https://www.acme.test")
    assert not sitemap_has_root("<urlset><url><loc>https://www.acme.test/about</loc></url></urlset>", "https://www.acme.test")


def test_diff_snapshots_threshold():
    before = [
        {"tag": "header", "className": "site", "top": 0, "height": 60},
        {"tag": "main", "className": "", "top": 60, "height": 900},
        {"tag": "footer", "className": "", "top": 960, "height": 100},
    ]
    after = [
        {"tag": "header", "className": "site", "top": 0, "height": 60.5},
        {"tag": "main", "className": "", "top": 140, "height": 900},
        {"tag": "footer", "className": "", "top": 1040, "height": 100},
    ]
    shifts = diff_snapshots(before, after)
    assert [s["tag"] for s in shifts] == ["main", "footer"]
    assert shifts[0] == {"index": 1, "tag": "main", "className": "", "delta_top": 80.0, "delta_height": 0.0}


@pytest.mark.parametrize("path, name", [("/", "home.png"), ("", "home.png"), ("/about", "about.png"), ("/a-b/", "a-b.png")])
def test_screenshot_name(path, name):
    assert screenshot_name(path) == name


def test_screenshot_names_stay_distinct_for_nested_paths():
    nested = screenshot_name("/a/b")
    assert nested.startswith("a-b-") and nested.endswith(".png")
    assert nested != screenshot_name("/a-b")
    assert screenshot_name("/pricing.html") != screenshot_name("/pricing-html")
    assert screenshot_name("/blog/post") == screenshot_name("/blog/post/")


def test_head_snapshot_counts_assets():
    html = """<html><head>
<title>  Home
  page </title>
<link rel="stylesheet" href="/a.css"><link rel=stylesheet href="/b.css">
<script src="/x.js"></script>
</head><body><script>inline()</script></body></html>"""
    snapshot = head_snapshot(html)
    assert snapshot["title"] == "Home page"
    assert snapshot["stylesheets"] == 2
    assert snapshot["scripts"] == 2
    assert snapshot["head_excerpt"].startswith("<title>")


def test_site_checks_fetch_robots_and_sitemap(monkeypatch):
    bodies = {
        "http://localhost:8788/robots.txt": (200, "User-agent: *\nSitemap: https://www.acme.test/sitemap.xml\n"),
        "http://localhost:8788/sitemap.xml": (200, "<urlset><url><loc>https://www.acme.test/about</loc></url></urlset>"),
    }
    fetched = []

    def fake_get(url, timeout):
        fetched.append(url)
        status, text = bodies[url]
        return types.SimpleNamespace(status_code=status, text=text)

    monkeypatch.setattr(run_seo_smoke.requests, "get", fake_get)
    issues = run_seo_smoke.site_checks("http://localhost:8788", "https://www.acme.test", 5)
    assert fetched == list(bodies)
    assert [i["title"] for i in issues] == ["Sitemap root"]


def test_site_checks_when_server_is_down(monkeypatch):
    def refuse(url, timeout):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(run_seo_smoke.requests, "get", refuse)
    titles = [i["title"] for i in run_seo_smoke.site_checks("http://localhost:8788", "https://www.acme.test", 5)]
    assert titles == ["robots.txt sitemap", "sitemap.xml unavailable"]
