from pathlib import Path

import pytest

INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>App</title>
</head>
<body>
  <div id="root"></div>
</body>
</html>
"""


@pytest.fixture
def dist(tmp_path) -> Path:
    root = tmp_path / "dist"
    (root / "assets").mkdir(parents=True)
    (root / "docs").mkdir()
    (root / "index.html").write_text(INDEX_HTML)
    (root / "file.txt").write_text("hello world")
    (root / "assets" / "app.js").write_text("console.log('app');")
    (root / "assets" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x01")
    (root / "docs" / "index.html").write_text("<html><head></head><body>docs</body></html>")
    return root


@pytest.fixture
def index_html() -> str:
    return INDEX_HTML
