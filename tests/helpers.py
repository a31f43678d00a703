from __future__ import annotations

from pathlib import Path


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def page(title: str, body: str = "", head: str = "") -> str:
    return f"""<!doctype html>
<html lang="en">
<head>
  <title>{title}</title>
  {head}
</head>
<body>
{body}
</body>
</html>
"""
