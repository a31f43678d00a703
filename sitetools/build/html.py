"""
HTML processing for the build: SSI template includes, placeholders, critical CSS,
hashed asset references, and schema injection.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from ..common import SSI_MARKER, iter_html_files, read_text, rel_posix
from ..config import ToolingConfig
from .css import minify_css
from .schemas import inject_default_schemas, inject_page_schemas

MAX_INLINE_CRITICAL = 50000
ABSOLUTE_PREFIXES = ("http", "//", "/", "#", "mailto:", "data:")

HREF_RE = re.compile(r'href="([^"]*)"')
SRC_RE = re.compile(r'src="([^"]*)"')
INCLUDE_RE = re.compile(r'<!--#include file="(?:\.\./(?:\.\./)?)?(?:templates/)?([^"]+?)\.html"\s*-->')
BODY_RE = re.compile(r"<body([^>]*)>")
NAV_RE = re.compile(r'<nav[^>]*class="(?:navbar|nav-main)"[^>]*>.*?</nav>', re.IGNORECASE | re.DOTALL)
STYLES_LINK_RE = re.compile(r'(?:<noscript>\s*)?<link\b[^>]*href="(?:\.\./)?styles\.css"[^>]*>(?:\s*</noscript>)?\s*')
STYLES_HREF_RE = re.compile(r'href="(?:\.\./|/)?styles\.css"')
SECURITY_META_RE = re.compile(
    r'<meta\s+http-equiv="(?:Content-Security-Policy|X-Frame-Options|X-Content-Type-Options|Referrer-Policy)"[^>]*>\s*',
    re.IGNORECASE,
)

SKIP_LINK = '<a href="#main-content" class="skip-link">Skip to main content</a>'
ANNOUNCEMENT = '<div class="announcement-container"></div>'
BREADCRUMB_CSS = (
    ".breadcrumbs{max-width:1280px;margin:0 auto;padding:1rem;font-size:.875rem}"
    ".breadcrumbs ol{list-style:none;display:flex;gap:.5rem;flex-wrap:wrap;margin:0;padding:0}"
    '.breadcrumbs li:not(:last-child):after{content:"/";margin-left:.5rem}'
)
BLOG_HEADER_CSS = ".blog-index__header{margin-bottom:3rem}.blog-index__header h1{margin-bottom:.75rem}"

DEFER_SCRIPTS = [
    "component-nav.js",
    "analytics.js",
    "lazy-loading.js",
    "scroll-animations.js",
    "main.js",
    "defer-css.js",
    "config/features.js",
    "features/index.js",
    "features/newsletter.js",
    "ui/index.js",
]

DIRECTORY_BUNDLES = {"blog": "blog", "case-studies": "case-studies", "community": "community"}
EXACT_BUNDLES = {"index": "index", "cloudflare-framework": "cloudflare-framework"}
SUBSTRING_BUNDLES = ["pricing", "subscribe", "product", "about", "migrate"]
STANDALONE_NAV_SKIP = {"404.html"}


@dataclass
class HtmlContext:
    config: ToolingConfig
    templates: dict[str, str]
    manifest: dict[str, str] = field(default_factory=dict)
    critical_css: str = ""
    header_css: str = ""
    schemas_dir: Path | None = None
    warnings: list[str] = field(default_factory=list)


def load_templates(templates_dir: Path) -> dict[str, str]:
    """Map 'header', 'partials/pricing-cards', ... to template HTML."""
    templates: dict[str, str] = {}
    if not templates_dir.is_dir():
        return templates
    for path in sorted(templates_dir.rglob("*.html")):
        key = path.relative_to(templates_dir).with_suffix("").as_posix()
        templates[key] = path.read_text(encoding="utf-8")
    return templates


def adjust_template_paths(template: str, prefix: str) -> str:
    """Prefix relative href/src values so a shared template works from any directory depth."""
    if not prefix:
        return template

    def adjust(attr: str):
        def replace(match: re.Match[str]) -> str:
            value = match.group(1)
            if value.startswith(ABSOLUTE_PREFIXES):
                return match.group(0)
            return f'{attr}="{prefix}{value}"'

        return replace

    template = HREF_RE.sub(adjust("href"), template)
    return SRC_RE.sub(adjust("src"), template)


def path_prefix(rel_path: str) -> str:
    return "../" if "/" in rel_path else "/"


def resolve_page_css_bundle(rel_path: str) -> str:
    parts = rel_path.replace("\\", "/").split("/")
    for directory in parts[:-1]:
        if directory in DIRECTORY_BUNDLES:
            return DIRECTORY_BUNDLES[directory]
    name = parts[-1][: -len(".html")] if parts[-1].endswith(".html") else parts[-1]
    if name in EXACT_BUNDLES:
        return EXACT_BUNDLES[name]
    for marker in SUBSTRING_BUNDLES:
        if marker in name:
            return marker
    return "common"


def is_lcp_page(rel_path: str) -> bool:
    name = rel_path.split("/")[-1]
    return rel_path == "index.html" or "guide" in name or name.startswith("cloudflare-framework")


def replace_ssi_includes(content: str, templates: dict[str, str], warnings: list[str] | None = None) -> str:
    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in templates:
            return templates[key]
        if warnings is not None:
            warnings.append(f"Unknown include: {match.group(0)}")
        return match.group(0)

    return INCLUDE_RE.sub(replace, content)


def insert_after_body(content: str, snippet: str) -> str:
    return BODY_RE.sub(lambda m: f"{m.group(0)}\n    {snippet}", content, count=1)


def add_skip_link(content: str) -> str:
    if 'class="skip-link"' not in content:
        return insert_after_body(content, f"{SKIP_LINK}\n    {ANNOUNCEMENT}")
    if "announcement-container" not in content:
        return insert_after_body(content, ANNOUNCEMENT)
    return content


def build_header_critical_css(source_dir: Path, rel_path: str) -> str:
    header_path = source_dir / "css" / "global" / "header.css"
    css = minify_css(header_path.read_text(encoding="utf-8")) if header_path.is_file() else ""
    css += BREADCRUMB_CSS
    if rel_path.startswith("blog/"):
        css += BLOG_HEADER_CSS
    return css


def replace_styles_links(content: str, replacement: str) -> tuple[str, bool]:
    """Swap the first styles.css link (or preload/stylesheet pair) for replacement and drop the rest."""
    state = {"replaced": False}

    def replace(match: re.Match[str]) -> str:
        if state["replaced"]:
            return ""
        state["replaced"] = True
        return replacement + "\n    "

    updated = STYLES_LINK_RE.sub(replace, content)
    return updated, state["replaced"]


def inline_critical_css(content: str, rel_path: str, critical_css: str, manifest: dict[str, str]) -> str:
    bundle = resolve_page_css_bundle(rel_path)
    common_file = manifest.get("styles.css", "styles.css")
    page_file = common_file if bundle == "common" else manifest.get(f"styles-{bundle}.css", f"styles-{bundle}.css")
    links = f'<link rel="stylesheet" href="/{common_file}">'
    if bundle != "common":
        links += f'\n    <link rel="stylesheet" href="/{page_file}">'

    if not critical_css:
        return content

    if len(critical_css) >= MAX_INLINE_CRITICAL:
        print(f"Warning: critical CSS too large ({len(critical_css)} bytes) for {rel_path}, linking only")
        content, replaced = replace_styles_links(content, links)
        if not replaced and bundle != "common":
            content = content.replace("</body>", f"    {links}\n</body>", 1)
        return content

    inline = f"<style>{critical_css}</style>"
    if is_lcp_page(rel_path):
        preloads = f'<link rel="preload" href="/{common_file}" as="style">'
        if bundle != "common":
            preloads += f'\n    <link rel="preload" href="/{page_file}" as="style">'
        content, _ = replace_styles_links(content, f"{inline}\n    {preloads}")
        content = content.replace("</body>", f"    {links}\n</body>", 1)
        if bundle != "common":
            deferred = re.compile(
                rf"""<link(?=[^>]*media="print")(?=[^>]*href="[^"]*{re.escape(bundle)}[^"]*")[^>]*>\s*""",
                re.IGNORECASE,
            )
            content = deferred.sub("", content)
        return content

    content, _ = replace_styles_links(content, f"{inline}\n    {links}")
    return content


def normalize_styles_href(content: str, manifest: dict[str, str]) -> str:
    hashed = manifest.get("styles.css", "styles.css")
    return STYLES_HREF_RE.sub(f'href="/{hashed}"', content)


def defer_scripts(content: str) -> str:
    for name in DEFER_SCRIPTS:
        pattern = re.compile(rf"""<script([^>]*)src=["'](?:\.?/)?js/{re.escape(name)}["']([^>]*)></script>""")

        def add_defer(match: re.Match[str]) -> str:
            tag = match.group(0)
            if re.search(r"\bdefer\b|\basync\b", tag) or re.search(r"""type=["']module["']""", tag):
                return tag
            return tag.replace("<script", "<script defer", 1)

        content = pattern.sub(add_defer, content)
    return content


def hash_asset_references(content: str, manifest: dict[str, str]) -> str:
    for key, hashed in manifest.items():
        if key.startswith("js/"):
            pattern = re.compile(rf"""(<script[^>]*src=["'])(?:\.\./|\.?/)?{re.escape(key)}(["'])""")
            content = pattern.sub(rf"\g<1>/{hashed}\g<2>", content)
        elif key.startswith("styles-"):
            page = key[len("styles-") : -len(".css")]
            pattern = re.compile(rf"""(<link[^>]*href=["'])(?:\.\./|\.?/)?css/pages/{re.escape(page)}\.css(["'])""")
            content = pattern.sub(rf"\g<1>/{hashed}\g<2>", content)
    return content


def remove_security_meta(content: str) -> str:
    return SECURITY_META_RE.sub("", content)


def inject_schemas(rel_path: str, content: str, ctx: HtmlContext) -> str:
    if ctx.schemas_dir is not None:
        content = inject_page_schemas(rel_path, content, ctx.schemas_dir)
    return inject_default_schemas(content, ctx.config)


def process_templated_page(rel_path: str, content: str, ctx: HtmlContext) -> str:
    prefix = path_prefix(rel_path)
    adjusted = {key: adjust_template_paths(value, prefix) for key, value in ctx.templates.items()}
    content = add_skip_link(content)
    content = content.replace("<!-- HEADER_PLACEHOLDER -->", adjusted.get("header", ""))

    verification = ctx.templates.get("verification")
    if verification and "<head>" in content:
        content = content.replace("<head>", f"<head>\n    {verification}", 1)
    if "</head>" in content:
        style_tag = f"<style>{ctx.header_css}</style>\n    " if ctx.header_css else ""
        theme = ctx.templates.get("theme-script", "")
        content = content.replace("</head>", f"    {style_tag}{theme}\n</head>", 1)
    else:
        ctx.warnings.append(f"No </head> in {rel_path}; theme script not injected")

    content = replace_ssi_includes(content, adjusted, ctx.warnings)

    if rel_path == "index.html":
        hero = ctx.templates.get("hero-minimal", "")
    elif rel_path == "pricing.html":
        hero = adjusted.get("hero-pricing", "")
    else:
        hero = adjusted.get("hero", "")
    content = content.replace("<!-- HERO_PLACEHOLDER -->", hero)
    content = content.replace("<!-- FOOTER_PLACEHOLDER -->", adjusted.get("footer", ""))

    content = inline_critical_css(content, rel_path, ctx.critical_css, ctx.manifest)
    content = normalize_styles_href(content, ctx.manifest)
    content = defer_scripts(content)
    content = hash_asset_references(content, ctx.manifest)
    content = remove_security_meta(content)
    return inject_schemas(rel_path, content, ctx)


def process_standalone_page(rel_path: str, content: str, ctx: HtmlContext) -> str:
    name = rel_path.split("/")[-1]
    nav = ctx.templates.get("nav-main", "")
    if name not in STANDALONE_NAV_SKIP and not name.startswith("google") and "<body" in content and nav:
        content = NAV_RE.sub("", content, count=1)
        content = insert_after_body(content, nav)
        footer = ctx.templates.get("footer", "")
        if footer and "<footer" not in content:
            content = content.replace("</body>", f"{footer}\n</body>", 1)
    content = hash_asset_references(content, ctx.manifest)
    return inject_schemas(rel_path, content, ctx)


def process_html(source_dir: Path, dist: Path, ctx: HtmlContext) -> dict[str, list[str]]:
    """Process every HTML page under source_dir into dist."""
    result: dict[str, list[str]] = {"templated": [], "standalone": []}
    for path in iter_html_files(source_dir):
        rel = rel_posix(path, source_dir)
        content = read_text(path)
        if SSI_MARKER in content:
            ctx.header_css = build_header_critical_css(source_dir, rel)
            output = process_templated_page(rel, content, ctx)
            result["templated"].append(rel)
        else:
            output = process_standalone_page(rel, content, ctx)
            result["standalone"].append(rel)
        target = dist / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(output, encoding="utf-8")
    return result
