"""
Shared helpers for the sitetools runners: HTML discovery, parsing, and report output.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Iterable

from bs4 import BeautifulSoup

PRIORITY_ORDER = {"Critical": 0, "High": 1, "Medium": 2, "Low": 3, "Info": 4}

SKIP_DIRS = {"node_modules", "css", "js", "icons", "demo", "images", "assets", "fonts", "vendor"}
INTERNAL_RE = re.compile(r"internal|private|draft|temp")
SSI_MARKER = '<!--#include file="'
JSONLD_TYPE_RE = re.compile(r"application/ld\+json", re.IGNORECASE)


class SiteToolsError(Exception):
    """Base error for failures a runner reports and turns into an exit code."""


class BuildError(SiteToolsError):
    pass


def is_skipped_dir(name: str, skip_dirs: Iterable[str] = SKIP_DIRS) -> bool:
    return name.startswith(".") or name in set(skip_dirs) or bool(INTERNAL_RE.search(name))


def iter_html_files(root: Path, skip_dirs: Iterable[str] = SKIP_DIRS) -> list[Path]:
    """Return HTML files under root, skipping asset, hidden, and internal-looking paths."""
    skip = set(skip_dirs)
    found: list[Path] = []
    if not root.is_dir():
        return found

    def walk(directory: Path) -> None:
        for entry in sorted(directory.iterdir()):
            if entry.is_dir():
                if is_skipped_dir(entry.name, skip):
                    continue
                walk(entry)
            elif entry.suffix == ".html" and not INTERNAL_RE.search(entry.name):
                found.append(entry)

    walk(root)
    return found


def rel_posix(path: Path, root: Path) -> str:
    return path.relative_to(root).as_posix()


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="ignore")


def write_if_changed(path: Path, content: str) -> bool:
    old = read_text(path) if path.exists() else None
    if old == content:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return True


def load_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def dump_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def soup_of(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, "lxml")
    except Exception:
        return BeautifulSoup(html, "html.parser")


def meta(soup: BeautifulSoup, name: str | None = None, prop: str | None = None) -> str | None:
    attrs = {"name": name} if name else {"property": prop}
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return str(tag.get("content")).strip()
    return None


def canonical_href(soup: BeautifulSoup) -> str | None:
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if "canonical" in [r.lower() for r in rel]:
            return str(link.get("href")).strip()
    return None


def canonical_host(host: str | None) -> str:
    value = (host or "").strip().lower().rstrip(".")
    if value.startswith("www."):
        return value[4:]
    return value


def page_slug(rel_path: str) -> str:
    """blog/post.html -> post, blog/index.html -> blog, index.html -> index."""
    parts = rel_path.replace("\\", "/").split("/")
    name = parts[-1]
    if name.endswith(".html"):
        name = name[: -len(".html")]
    if name == "index" and len(parts) > 1:
        return parts[-2]
    return name


def title_case(slug: str) -> str:
    return " ".join(word.capitalize() for word in re.split(r"[-_\s]+", slug) if word)


def split_csv(raw: str) -> list[str]:
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


def add_issue(issues: list[dict[str, str]], priority: str, title: str, detail: str) -> None:
    issues.append({"priority": priority, "title": title, "detail": detail})


def sort_issues(issues: list[dict[str, str]]) -> list[dict[str, str]]:
    return sorted(issues, key=lambda x: PRIORITY_ORDER.get(x["priority"], 99))


def issue_lines(issues: list[dict[str, str]]) -> str:
    if not issues:
        return "- None"
    return "\n".join(f"- **{x['priority']}** {x['title']}: {x['detail']}" for x in sort_issues(issues))


def write_summary(out_dir: Path, summary: dict[str, Any]) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    summary_path = out_dir / "SUMMARY.json"
    summary_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
    return summary_path
