from __future__ import annotations

from sitetools.build.html import (
    HtmlContext,
    add_skip_link,
    adjust_template_paths,
    defer_scripts,
    hash_asset_references,
    inline_critical_css,
    load_templates,
    path_prefix,
    process_html,
    remove_security_meta,
    replace_ssi_includes,
    resolve_page_css_bundle,
)
from sitetools.config import load_config

from .helpers import page, write


def test_adjust_template_paths_only_touches_relative_urls():
    template = (
        '<a href="about.html">About</a><img src="img/logo.png">'
        '<a href="/pricing">P</a><a href="https://x.test">X</a><a href="#top">T</a>'
        '<a href="mailto:a@b.test">M</a>'
    )
    out = adjust_template_paths(template, "../")
    assert 'href="../about.html"' in out
    assert 'src="../img/logo.png"' in out
    assert 'href="/pricing"' in out
    assert 'href="https://x.test"' in out
    assert 'href="#top"' in out
    assert 'href="mailto:a@b.test"' in out


def test_path_prefix_depends_on_depth():
    assert path_prefix("index.html") == "/"
    assert path_prefix("blog/post.html") == "../"


def test_resolve_page_css_bundle():
    assert resolve_page_css_bundle("blog/first-post.html") == "blog"
    assert resolve_page_css_bundle("index.html") == "index"
    assert resolve_page_css_bundle("pricing-enterprise.html") == "pricing"
    assert resolve_page_css_bundle("faq.html") == "common"


def test_replace_ssi_includes_with_known_and_unknown_templates():
    warnings: list[str] = []
    content = '<!--#include file="../templates/header.html" -->\n<!--#include file="missing.html" -->'
    out = replace_ssi_includes(content, {"header": "<header>H</header>"}, warnings)
    assert "<header>H</header>" in out
    assert '<!--#include file="missing.html" -->' in out
    assert warnings == ['Unknown include: <!--#include file="missing.html" -->']


def test_nested_template_keys(tmp_path):
    write(tmp_path / "partials" / "cards.html", "<div>cards</div>")
    templates = load_templates(tmp_path)
    out = replace_ssi_includes('<!--#include file="templates/partials/cards.html" -->', templates)
    assert out == "<div>cards</div>"


def test_defer_scripts_skips_module_and_async():
    html = (
        '<script src="js/main.js"></script>'
        '<script type="module" src="js/analytics.js"></script>'
        '<script async src="js/lazy-loading.js"></script>'
    )
    out = defer_scripts(html)
    assert '<script defer src="js/main.js"></script>' in out
    assert '<script type="module" src="js/analytics.js"></script>' in out
    assert "<script defer async" not in out


def test_hash_asset_references_uses_manifest():
    manifest = {"js/main.js": "js/main.abc123.js", "styles-blog.css": "styles-blog.123abc.css"}
    html = '<script src="../js/main.js"></script><link rel="stylesheet" href="css/pages/blog.css">'
    out = hash_asset_references(html, manifest)
    assert 'src="/js/main.abc123.js"' in out
    assert 'href="/styles-blog.123abc.css"' in out


def test_remove_security_meta():
    html = '<meta http-equiv="X-Frame-Options" content="DENY">\n<meta charset="utf-8">'
    assert remove_security_meta(html) == '<meta charset="utf-8">'


def test_add_skip_link_once():
    html = "<body>\n<main></main></body>"
    once = add_skip_link(html)
    assert once.count('class="skip-link"') == 1
    assert "announcement-container" in once
    assert add_skip_link(once) == once


def test_process_html_templated_and_standalone(project):
    public = project / "public"
    dist = project / "dist"
    write(
        public / "index.html",
        page(
            "Acme Tools | Home",
            body='<!--#include file="templates/header.html" -->\n<main id="main-content"><h1>Hi</h1></main>\n<!-- FOOTER_PLACEHOLDER -->',
            head='<link rel="stylesheet" href="styles.css">',
        ),
    )
    write(
        public / "docs" / "about.html",
        page("About", body='<nav class="navbar">old nav</nav>\n<main><a href="../index.html">Home</a></main>'),
    )
    templates = {
        "header": '<header><a href="about.html">About</a></header>',
        "footer": "<footer>foot</footer>",
        "nav-main": '<nav class="nav-main">new nav</nav>',
        "theme-script": "<script>/* theme */</script>",
    }
    ctx = HtmlContext(
        config=load_config(project),
        templates=templates,
        manifest={"styles.css": "styles.abcd1234.css"},
        critical_css=".c{color:red}",
    )

    result = process_html(public, dist, ctx)

    assert result == {"templated": ["index.html"], "standalone": ["docs/about.html"]}
    index = (dist / "index.html").read_text(encoding="utf-8")
    assert '<header><a href="/about.html">About</a></header>' in index
    assert "<footer>foot</footer>" in index
    assert "<script>/* theme */</script>" in index
    assert 'class="skip-link"' in index
    assert "<style>.c{color:red}</style>" in index
    assert '<link rel="stylesheet" href="/styles.abcd1234.css">' in index
    assert 'href="styles.css"' not in index
    assert index.count("application/ld+json") == 3

    about = (dist / "docs" / "about.html").read_text(encoding="utf-8")
    assert "old nav" not in about
    assert '<nav class="nav-main">new nav</nav>' in about
    assert "<footer>foot</footer>" in about


MANIFEST = {"styles.css": "styles.abc.css", "styles-blog.css": "styles-blog.def.css", "styles-index.css": "styles-index.123.css"}
STYLES_LINK = '<link rel="stylesheet" href="../styles.css">'


def test_inline_critical_css_without_css_leaves_page_alone():
    html = page("Post", head=STYLES_LINK)
    assert inline_critical_css(html, "blog/post.html", "", MANIFEST) == html


def test_inline_critical_css_on_bundled_page_links_both_stylesheets():
    html = inline_critical_css(page("Post", head=STYLES_LINK), "blog/post.html", "h1{color:red}", MANIFEST)
    assert "<style>h1{color:red}</style>" in html
    assert 'href="/styles.abc.css"' in html
    assert 'href="/styles-blog.def.css"' in html
    assert "../styles.css" not in html
    assert 'rel="preload"' not in html


def test_inline_critical_css_too_large_links_only(capsys):
    html = inline_critical_css(page("Post"), "blog/post.html", "a{}" * 20000, MANIFEST)
    assert "<style>" not in html
    assert '<link rel="stylesheet" href="/styles.abc.css">' in html.split("</head>")[1]
    assert '<link rel="stylesheet" href="/styles-blog.def.css">' in html.split("</head>")[1]
    assert html.index("styles-blog.def.css") < html.index("</body>")
    assert "critical CSS too large" in capsys.readouterr().out


def test_inline_critical_css_too_large_replaces_existing_link(capsys):
    html = inline_critical_css(page("FAQ", head=STYLES_LINK), "faq.html", "a{}" * 20000, MANIFEST)
    assert html.count('href="/styles.abc.css"') == 1
    assert "<style>" not in html
    assert html.index("styles.abc.css") < html.index("</head>")


def test_inline_critical_css_home_preloads_and_defers_links():
    head = STYLES_LINK + '\n  <link rel="stylesheet" href="/styles-index.123.css" media="print" onload="this.media=\'all\'">'
    html = inline_critical_css(page("Home", head=head), "index.html", "body{margin:0}", MANIFEST)
    head_part, body_part = html.split("</head>")
    assert "<style>body{margin:0}</style>" in head_part
    assert '<link rel="preload" href="/styles.abc.css" as="style">' in head_part
    assert '<link rel="preload" href="/styles-index.123.css" as="style">' in head_part
    assert 'media="print"' not in html
    assert '<link rel="stylesheet" href="/styles.abc.css">' in body_part
    assert '<link rel="stylesheet" href="/styles-index.123.css">' in body_part
