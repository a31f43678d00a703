#!/usr/bin/env python3
"""
JSON-LD validation for built pages and completeness checks for schema data files.
"""

from __future__ import annotations

import argparse
import json
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Iterator
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from ..common import (
    JSONLD_TYPE_RE,
    dump_json,
    iter_html_files,
    read_text,
    rel_posix,
    soup_of,
    write_summary,
)

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}(?:[Tt ][0-9:\-+.Zz]+)?$")
URL_FIELDS = {"url", "logo", "@id", "sameas", "item"}
DATE_FIELDS = {"datepublished", "datemodified", "datecreated", "uploaddate"}
MINIMAL_KEY_COUNT = 4
REPORT_EXCLUDE_RE = re.compile(r"-report\.json$|-candidates\.json$|^page-config\.json$", re.IGNORECASE)

# Fields a page-level schema must carry before it is considered complete.
REQUIRED_FIELDS: dict[str, list[str]] = {
    "article": ["headline", "datePublished"],
    "blogposting": ["headline", "datePublished"],
    "webpage": ["headline", "url", "description", "keywords"],
    "faqpage": ["mainEntity"],
    "softwareapplication": ["name", "description", "url"],
    "product": ["name", "description", "url", "offers"],
    "breadcrumblist": ["itemListElement"],
    "organization": ["name", "url"],
    "website": ["name", "url"],
}


@dataclass
class NodeValidation:
    file: str
    block_index: int
    schema_type: str
    status: str
    issues: list[str]


def normalize_type(value: str) -> str:
    cleaned = str(value or "").strip().rstrip("/")
    if "/" in cleaned:
        cleaned = cleaned.rsplit("/", 1)[-1]
    return cleaned.lower()


def type_list(raw_type: Any) -> list[str]:
    if isinstance(raw_type, list):
        return [normalize_type(x) for x in raw_type if normalize_type(str(x))]
    normalized = normalize_type(str(raw_type or ""))
    return [normalized] if normalized else []


def context_valid(ctx: Any) -> bool:
    if isinstance(ctx, list):
        return any(context_valid(item) for item in ctx)
    if isinstance(ctx, str):
        return ctx.strip().rstrip("/").lower() in ("https://schema.org", "http://schema.org")
    return False


def iter_schema_nodes(value: Any, inherited_context: Any = None) -> Iterator[tuple[dict[str, Any], Any]]:
    if isinstance(value, dict):
        context = value.get("@context", inherited_context)
        if "@type" in value:
            yield value, context
        for child in value.values():
            yield from iter_schema_nodes(child, context)
    elif isinstance(value, list):
        for child in value:
            yield from iter_schema_nodes(child, inherited_context)


def values_for_key(value: Any, key: str) -> list[Any]:
    found: list[Any] = []
    if isinstance(value, dict):
        for k, child in value.items():
            if k.lower() == key:
                found.append(child)
            found.extend(values_for_key(child, key))
    elif isinstance(value, list):
        for child in value:
            found.extend(values_for_key(child, key))
    return found


def missing_fields(node: dict[str, Any], schema_type: str) -> list[str]:
    return [name for name in REQUIRED_FIELDS.get(schema_type, []) if node.get(name) in (None, "", [], {})]


def extract_jsonld_blocks(soup: BeautifulSoup) -> tuple[list[dict[str, Any]], list[str]]:
    blocks: list[dict[str, Any]] = []
    parse_errors: list[str] = []
    for idx, script in enumerate(soup.find_all("script", attrs={"type": JSONLD_TYPE_RE}), start=1):
        raw = (script.string or script.get_text() or "").strip()
        if not raw:
            parse_errors.append(f"Block {idx}: empty JSON-LD script")
            continue
        try:
            blocks.append({"index": idx, "payload": json.loads(raw)})
        except json.JSONDecodeError as exc:
            parse_errors.append(f"Block {idx}: invalid JSON ({exc})")
    return blocks, parse_errors


def validate_node(node: dict[str, Any], context: Any, file: str, block_index: int) -> list[NodeValidation]:
    types = type_list(node.get("@type"))
    if not types:
        return [NodeValidation(file, block_index, "unknown", "fail", ["Missing or invalid @type value."])]

    results = []
    for schema_type in types:
        issues: list[str] = []
        if not context_valid(context):
            issues.append("@context should be https://schema.org")
        for name in missing_fields(node, schema_type):
            issues.append(f"Missing required property for {schema_type}: {name}")
        for key in URL_FIELDS:
            for val in values_for_key(node, key):
                for item in val if isinstance(val, list) else [val]:
                    if isinstance(item, str) and item.strip() and not urlparse(item).netloc:
                        issues.append(f"{key} should be an absolute URL: {item}")
        for key in DATE_FIELDS:
            for val in values_for_key(node, key):
                if isinstance(val, str) and not ISO_DATE_RE.match(val.strip()):
                    issues.append(f"{key} should use ISO-8601 date format: {val}")
        status = "pass"
        if issues:
            status = "fail" if any("required" in i or "@context" in i for i in issues) else "warn"
        results.append(NodeValidation(file, block_index, schema_type, status, sorted(set(issues))))
    return results


def validate_html(site_dir: Path) -> dict[str, Any]:
    validations: list[NodeValidation] = []
    parse_errors: list[dict[str, str]] = []
    pages = iter_html_files(site_dir)
    block_count = 0
    for path in pages:
        rel = rel_posix(path, site_dir)
        blocks, errors = extract_jsonld_blocks(soup_of(read_text(path)))
        block_count += len(blocks)
        parse_errors.extend({"file": rel, "error": err} for err in errors)
        for block in blocks:
            top = block["payload"]
            # A bare top-level object without @type is an error; nested graphs are walked.
            if isinstance(top, dict) and "@type" not in top and "@graph" not in top:
                validations.append(NodeValidation(rel, block["index"], "unknown", "fail", ["Missing @type"]))
                continue
            for node, context in iter_schema_nodes(top):
                validations.extend(validate_node(node, context, rel, block["index"]))
    return {
        "pages_scanned": len(pages),
        "blocks": block_count,
        "validations": validations,
        "parse_errors": parse_errors,
    }


def iter_schema_files(schemas_dir: Path) -> list[Path]:
    return sorted(
        path
        for path in schemas_dir.rglob("*.json")
        if not REPORT_EXCLUDE_RE.search(path.name)
    )


def check_completeness(schemas_dir: Path) -> dict[str, Any]:
    files: list[dict[str, Any]] = []
    for path in iter_schema_files(schemas_dir):
        rel = rel_posix(path, schemas_dir)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            files.append({"file": rel, "type": None, "status": "invalid", "missing": [], "error": str(exc)})
            continue
        if not isinstance(data, dict):
            continue
        types = type_list(data.get("@type"))
        missing: list[str] = []
        for schema_type in types:
            missing.extend(missing_fields(data, schema_type))
        minimal = len(data) <= MINIMAL_KEY_COUNT
        status = "incomplete" if missing else ("minimal" if minimal else "complete")
        files.append(
            {
                "file": rel,
                "type": data.get("@type"),
                "status": status,
                "missing": sorted(set(missing)),
                "keys": len(data),
            }
        )
    counts = {status: sum(1 for f in files if f["status"] == status) for status in ("complete", "minimal", "incomplete", "invalid")}
    return {"total": len(files), "counts": counts, "files": files}


def render_validation_report(out_path: Path, site_dir: Path, result: dict[str, Any]) -> None:
    validations: list[NodeValidation] = result["validations"]

    def lines(status: str) -> str:
        rows = [
            f"- `{v.file}` block {v.block_index}, `{v.schema_type}`: {'; '.join(v.issues[:4])}"
            for v in validations
            if v.status == status and v.issues
        ]
        return "\n".join(rows) if rows else "- None"

    report = f"""# Schema Validation Report

## Source
- `{site_dir}`

## Summary
- Pages scanned: {result['pages_scanned']}
- Parsed JSON-LD blocks: {result['blocks']}
- Typed nodes: {len(validations)}
- Pass: {sum(1 for v in validations if v.status == 'pass')}
- Warn: {sum(1 for v in validations if v.status == 'warn')}
- Fail: {sum(1 for v in validations if v.status == 'fail')}
- Parse errors: {len(result['parse_errors'])}

### Failures
{lines('fail')}

### Warnings
{lines('warn')}

### Parse Errors
{chr(10).join(f"- `{e['file']}`: {e['error']}" for e in result['parse_errors']) if result['parse_errors'] else "- None"}
"""
    out_path.write_text(report, encoding="utf-8")


def run_validate(args: argparse.Namespace) -> int:
    site_dir = Path(args.site_dir).resolve()
    if not site_dir.is_dir():
        print(f"Error: site directory not found: {site_dir}")
        return 2
    result = validate_html(site_dir)
    out_dir = Path(args.output_dir).resolve()
    out_dir.mkdir(parents=True, exist_ok=True)
    report_path = out_dir / "SCHEMA-REPORT.md"
    render_validation_report(report_path, site_dir, result)
    failures = [v for v in result["validations"] if v.status == "fail"]
    summary_path = write_summary(
        out_dir,
        {
            "site_dir": str(site_dir),
            "pages_scanned": result["pages_scanned"],
            "blocks": result["blocks"],
            "parse_errors": result["parse_errors"],
            "failures": [asdict(v) for v in failures],
            "warnings": sum(1 for v in result["validations"] if v.status == "warn"),
        },
    )
    print(f"Pages scanned: {result['pages_scanned']}")
    print(f"JSON-LD blocks: {result['blocks']}")
    print(f"Parse errors: {len(result['parse_errors'])}")
    print(f"Failing nodes: {len(failures)}")
    print(f"Report: {report_path}")
    print(f"Summary: {summary_path}")
    return 1 if result["parse_errors"] or (failures and args.strict) else 0


def run_completeness(args: argparse.Namespace) -> int:
    schemas_dir = Path(args.schemas_dir).resolve()
    if not schemas_dir.is_dir():
        print(f"Error: schemas directory not found: {schemas_dir}")
        return 2
    result = check_completeness(schemas_dir)
    report_path = schemas_dir / "completeness-report.json"
    dump_json(report_path, result)
    summary_path = write_summary(Path(args.output_dir).resolve(), {"schemas_dir": str(schemas_dir), **result["counts"]})
    for status, count in result["counts"].items():
        print(f"{status.capitalize()}: {count}")
    print(f"Report: {report_path}")
    print(f"Summary: {summary_path}")
    return 1 if result["counts"]["invalid"] else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate JSON-LD in pages and schema data files.")
    sub = parser.add_subparsers(dest="command", required=True)

    p_validate = sub.add_parser("validate", help="Parse and validate every JSON-LD block in HTML files")
    p_validate.add_argument("--site-dir", default="dist")
    p_validate.add_argument("--strict", action="store_true", help="Exit 1 on missing required properties too")
    p_validate.add_argument("--output-dir", default="schema-check-output")
    p_validate.set_defaults(func=run_validate)

    p_complete = sub.add_parser("completeness", help="Check required fields in schema data files")
    p_complete.add_argument("--schemas-dir", default="data/schemas")
    p_complete.add_argument("--output-dir", default="schema-check-output")
    p_complete.set_defaults(func=run_completeness)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
