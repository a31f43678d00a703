from __future__ import annotations

from sitetools.build.css import (
    CssBundles,
    bundle_css,
    bundle_files,
    minify_css_files,
    resolve_imports,
    write_hashed_css,
)
from sitetools.build.js import process_js

from .helpers import write


def test_resolve_imports_inlines_nested_files(tmp_path):
    write(tmp_path / "parts" / "btn.css", ".btn{padding:1px}")
    css = '@import url("parts/btn.css");\nbody{color:black}'
    out = resolve_imports(css, tmp_path)
    assert ".btn{padding:1px}" in out
    assert "@import" not in out


def test_circular_imports_terminate(tmp_path, capsys):
    write(tmp_path / "css" / "a.css", '@import url("b.css");\n.a{color:red}')
    write(tmp_path / "css" / "b.css", '@import url("a.css");\n.b{color:blue}')
    out = bundle_files(["css/a.css"], "test", tmp_path)
    assert ".a{color:red}" in out
    assert ".b{color:blue}" in out
    assert "@import" not in out
    assert "circular" in capsys.readouterr().out


def test_missing_import_is_left_in_place(tmp_path, capsys):
    out = resolve_imports('@import url("nope.css");', tmp_path)
    assert "@import" in out
    assert "not found" in capsys.readouterr().out


def test_missing_bundle_file_warns(tmp_path, capsys):
    assert bundle_files(["css/missing.css"], "common", tmp_path) == ""
    assert "Warning: common CSS file not found" in capsys.readouterr().out


def test_hashed_name_depends_only_on_minified_content(tmp_path):
    manifest: dict[str, str] = {}
    write_hashed_css("a { color: red; }", "styles", tmp_path / "one", manifest)
    first = manifest["styles.css"]
    write_hashed_css("a{color:red}", "styles", tmp_path / "two", manifest)
    assert manifest["styles.css"] == first
    assert first.startswith("styles.") and first.endswith(".css")
    assert len(first.split(".")[1]) == 8


def test_bundle_css_writes_bundles_and_critical(tmp_path):
    src = tmp_path / "public"
    dist = tmp_path / "dist"
    write(src / "css" / "critical.css", ".crit { margin: 0 }")
    write(src / "css" / "base.css", '@import url("parts/btn.css");\nbody { color: black; }')
    write(src / "css" / "parts" / "btn.css", ".btn{padding:1px}")
    write(src / "css" / "pages" / "blog.css", ".post{color:blue}")
    bundles = CssBundles.from_dict(
        {
            "critical": ["css/critical.css"],
            "common": ["css/base.css"],
            "pages": {"blog": ["css/pages/blog.css"]},
            "deferred": {},
        }
    )

    manifest = bundle_css(src, dist, bundles)

    assert set(manifest) == {"styles.css", "styles-blog.css"}
    common = (dist / manifest["styles.css"]).read_text(encoding="utf-8")
    assert ".btn{padding:1px}" in common
    assert "body{color:black}" in common
    assert ".post{color:blue}" in (dist / manifest["styles-blog.css"]).read_text(encoding="utf-8")
    assert ".crit{margin:0}" in (dist / "critical.css").read_text(encoding="utf-8")


def test_bundles_default_when_config_missing():
    bundles = CssBundles.from_dict(None)
    assert "index" in bundles.pages
    assert bundles.critical


def test_minify_css_files_is_top_level_only(tmp_path):
    src = tmp_path / "public"
    write(src / "css" / "extra.css", ".x { color: red; }")
    write(src / "css" / "pages" / "nested.css", ".y{color:blue}")
    written = minify_css_files(src, tmp_path / "dist")
    assert written == ["css/extra.css"]
    assert (tmp_path / "dist" / "css" / "extra.css").read_text(encoding="utf-8") == ".x{color:red}"


def test_process_js_minifies_and_hashes(tmp_path):
    src = tmp_path / "public"
    dist = tmp_path / "dist"
    write(src / "js" / "main.js", "/* banner comment */\nfunction add(a, b) {\n  return a + b;\n}\n")
    write(src / "js" / "ui" / "index.js", "var ui = 1;\n")

    manifest = process_js(src, dist)

    assert set(manifest) == {"js/main.js", "js/ui/index.js"}
    assert manifest["js/ui/index.js"].startswith("js/ui/index.")
    main = (dist / manifest["js/main.js"]).read_text(encoding="utf-8")
    assert "banner comment" not in main
    assert "return a+b" in main


def test_process_js_without_js_dir(tmp_path):
    assert process_js(tmp_path, tmp_path / "dist") == {}
