from __future__ import annotations

import json

from sitetools.seo import run_breadcrumbs, run_keywords
from sitetools.seo.run_breadcrumbs import build_crumbs, breadcrumb_schema, generate_breadcrumbs, page_title
from sitetools.seo.run_keywords import build_keywords, has_keywords, provision_file, tokenize

from .helpers import page, write

BASE = "https://www.acme.test"


def test_page_title_strips_site_suffix():
    assert page_title(page("About Us | Acme")) == "About Us"
    assert page_title(page("Pricing - Acme")) == "Pricing"
    assert page_title("<p>no title</p>") == ""


def test_build_crumbs_for_nested_page():
    crumbs = build_crumbs("blog/first-post.html", BASE, {}, "First Post")
    assert crumbs == [
        {"name": "Home", "url": "https://www.acme.test/"},
        {"name": "Blog", "url": "https://www.acme.test/blog/"},
        {"name": "First Post", "url": "https://www.acme.test/blog/first-post"},
    ]


def test_build_crumbs_prefers_page_config_names():
    pages = {"case-studies": {"name": "Customer Stories"}, "acme-bank": {"title": "Acme Bank"}}
    crumbs = build_crumbs("case-studies/acme-bank.html", BASE, pages)
    assert [c["name"] for c in crumbs] == ["Home", "Customer Stories", "Acme Bank"]


def test_directory_index_ends_at_directory():
    crumbs = build_crumbs("blog/index.html", BASE, {})
    assert crumbs[-1] == {"name": "Blog", "url": "https://www.acme.test/blog/"}


def test_breadcrumb_schema_positions():
    schema = breadcrumb_schema([{"name": "Home", "url": BASE + "/"}, {"name": "About", "url": BASE + "/about"}])
    assert schema["@type"] == "BreadcrumbList"
    assert [item["position"] for item in schema["itemListElement"]] == [1, 2]


def test_generate_breadcrumbs_writes_files_and_page_config(tmp_path):
    site = tmp_path / "public"
    schemas = tmp_path / "schemas"
    write(site / "index.html", page("Home"))
    write(site / "about.html", page("About Us | Acme"))
    write(site / "blog" / "index.html", page("Blog"))
    write(site / "blog" / "first-post.html", page("First Post | Acme"))
    write(site / "google123.html", "google-site-verification")
    write(site / "404.html", page("Not found"))

    written = generate_breadcrumbs(site, schemas, BASE)

    assert written == [
        "breadcrumbs/about-breadcrumbs.json",
        "breadcrumbs/first-post-breadcrumbs.json",
        "breadcrumbs/blog-breadcrumbs.json",
    ]
    about = json.loads((schemas / "breadcrumbs" / "about-breadcrumbs.json").read_text(encoding="utf-8"))
    assert about["itemListElement"][-1]["name"] == "About Us"
    config = json.loads((schemas / "page-config.json").read_text(encoding="utf-8"))
    assert config["pages"]["about"]["requiredSchemas"] == ["WebSite", "BreadcrumbList"]


def test_generate_breadcrumbs_dry_run_writes_nothing(tmp_path):
    write(tmp_path / "public" / "about.html", page("About"))
    written = generate_breadcrumbs(tmp_path / "public", tmp_path / "schemas", BASE, dry_run=True)
    assert written == ["breadcrumbs/about-breadcrumbs.json"]
    assert not (tmp_path / "schemas").exists()


def test_breadcrumbs_main_rejects_bad_page_config(project):
    write(project / "public" / "about.html", page("About"))
    write(project / "data" / "schemas" / "page-config.json", "[]")
    assert run_breadcrumbs.main(["--root", str(project)]) == 2


def test_tokenize_drops_urls_stopwords_and_short_words():
    words = tokenize("Learn how to deploy https://acme.test/x with the Edge runtime 2024")
    assert words == ["deploy", "edge", "runtime"]


def test_build_keywords_focus_phrase_and_brand():
    text = "Deploying Cloudflare Workers at the edge with workers routing"
    keywords = build_keywords(text, "Acme", "Cloudflare Workers")
    assert keywords[0] == "Cloudflare Workers"
    assert keywords[1] == "Workers"
    assert keywords[-1] == "Acme"
    assert len(keywords) == len(set(keywords))


def test_build_keywords_without_focus_match():
    keywords = build_keywords("Static hosting pipelines", "Acme", "Cloudflare Workers")
    assert "Cloudflare Workers" not in keywords
    assert keywords == ["Static", "Hosting", "Pipelines", "Acme"]


def test_has_keywords():
    assert has_keywords({"keywords": "a, b"})
    assert has_keywords({"keywords": ["a"]})
    assert not has_keywords({"keywords": ["", " "]})
    assert not has_keywords({})


def test_provision_file_is_idempotent(tmp_path):
    path = write(
        tmp_path / "guide.json",
        json.dumps({"@type": "WebPage", "name": "Edge caching guide", "description": "Caching static assets at the edge"}),
    )
    first = provision_file(path, "Acme", "Cloudflare Workers")
    assert first and first[-1] == "Acme"
    assert json.loads(path.read_text(encoding="utf-8"))["keywords"] == first
    assert provision_file(path, "Acme", "Cloudflare Workers") is None


def test_provision_file_skips_other_types_and_dry_run(tmp_path):
    org = write(tmp_path / "org.json", json.dumps({"@type": "Organization", "name": "Acme"}))
    assert provision_file(org, "Acme", "") is None
    article = write(tmp_path / "post.json", json.dumps({"@type": "Article", "headline": "Routing requests"}))
    assert provision_file(article, "Acme", "", dry_run=True)
    assert "keywords" not in json.loads(article.read_text(encoding="utf-8"))


def test_keywords_main(project, capsys):
    write(project / "data" / "schemas" / "pages" / "home.json", json.dumps({"@type": "WebPage", "name": "Edge tools"}))
    assert run_keywords.main(["--root", str(project)]) == 0
    assert "Updated 1 file(s)" in capsys.readouterr().out
    data = json.loads((project / "data" / "schemas" / "pages" / "home.json").read_text(encoding="utf-8"))
    assert data["keywords"][-1] == "Acme Tools"
