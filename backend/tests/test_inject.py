import dataclasses

import pytest
from pydantic import BaseModel

from spa_serve.document import DocumentTree
from spa_serve.errors import (
    ConfigSerializationFailed,
    EntryDocumentMissing,
    HeadElementMissing,
    InvalidNamespace,
    MissingNamespace,
    SPAServeError,
)
from spa_serve.inject import config_to_json, inject_web_env
from spa_serve.source import DirectorySource


class UntouchableSource:
    def walk(self):
        raise AssertionError("source was walked")

    def open(self, path):
        raise AssertionError("source was opened")


@dataclasses.dataclass
class WebEnv:
    name: str
    api_url: str
    debug: bool = False


class Settings(BaseModel):
    zeta: int = 1
    alpha: list[str] = ["a"]


def _script(ns, payload):
    return f'<script type="text/javascript">window.{ns} = {payload};</script>'


def test_inject_prepends_script_to_head(dist, index_html):
    snapshot = inject_web_env(DirectorySource(dist), {"name": "test"}, "TEST_ENV")

    html = snapshot.read("index.html").decode()
    script = _script("TEST_ENV", '{"name":"test"}')
    assert html == index_html.replace("<head>", "<head>" + script, 1)


def test_injected_script_is_first_child_of_head(dist):
    snapshot = inject_web_env(DirectorySource(dist), {"name": "test"}, "TEST_ENV")

    doc = DocumentTree.parse(snapshot.read("index.html").decode())
    head = doc.find_head()
    children = list(doc.children(head))
    script = doc.nodes[children[0]]
    assert script.tag == "script"
    assert script.attrs == [("type", "text/javascript")]
    assert doc.nodes[script.first_child].data == 'window.TEST_ENV = {"name":"test"};'
    assert [doc.nodes[c].tag for c in children if doc.nodes[c].tag] == ["script", "meta", "title"]


def test_other_files_copied_unchanged(dist):
    snapshot = inject_web_env(DirectorySource(dist), {"name": "test"}, "TEST_ENV")

    for path in ("file.txt", "assets/app.js", "assets/logo.png", "docs/index.html"):
        assert snapshot.read(path) == (dist / path).read_bytes()


def test_namespace_is_trimmed(dist):
    snapshot = inject_web_env(DirectorySource(dist), {}, "  MY_ENV \n")
    assert _script("MY_ENV", "{}") in snapshot.read("index.html").decode()


@pytest.mark.parametrize("ns", ["1ENV", "APP-ENV", "APP ENV", "window.x", "ÄPP", "a;b"])
def test_invalid_namespace_rejected_before_io(ns):
    with pytest.raises(InvalidNamespace):
        inject_web_env(UntouchableSource(), {"name": "test"}, ns)


def test_empty_namespace_rejected_before_io():
    with pytest.raises(MissingNamespace):
        inject_web_env(UntouchableSource(), {"name": "test"}, "")


def test_missing_entry_document(tmp_path):
    (tmp_path / "file.txt").write_text("x")
    with pytest.raises(EntryDocumentMissing) as exc_info:
        inject_web_env(DirectorySource(tmp_path), {"name": "test"}, "APP_ENV")
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)


def test_head_tag_may_be_omitted(tmp_path):
    (tmp_path / "index.html").write_text(
        '<!doctype html><meta charset="utf-8"><title>App</title>'
        '<div id="app"></div><script src="/main.js"></script>'
    )
    snapshot = inject_web_env(DirectorySource(tmp_path), {"a": 1}, "APP_ENV")

    assert snapshot.read("index.html").decode() == (
        "<!doctype html><html><head>" + _script("APP_ENV", '{"a":1}')
        + '<meta charset="utf-8"><title>App</title></head>'
        '<div id="app"></div><script src="/main.js"></script></html>'
    )


def test_body_without_head_gets_one(tmp_path):
    (tmp_path / "index.html").write_text("<html><body><p>hi</p></body></html>")
    snapshot = inject_web_env(DirectorySource(tmp_path), {}, "APP_ENV")

    assert snapshot.read("index.html").decode() == (
        "<html><head>" + _script("APP_ENV", "{}") + "</head><body><p>hi</p></body></html>"
    )


def test_missing_head_element(dist, monkeypatch):
    monkeypatch.setattr(DocumentTree, "find_head", lambda self: None)
    with pytest.raises(HeadElementMissing):
        inject_web_env(DirectorySource(dist), {"name": "test"}, "APP_ENV")


def test_undecodable_entry_document(tmp_path):
    (tmp_path / "index.html").write_bytes(b"<html><head>\xff\xfe</head></html>")
    with pytest.raises(SPAServeError):
        inject_web_env(DirectorySource(tmp_path), {"name": "test"}, "APP_ENV")


def test_config_serialization_failure(dist):
    with pytest.raises(ConfigSerializationFailed):
        inject_web_env(DirectorySource(dist), {"callback": lambda: None}, "APP_ENV")


def test_json_is_compact_and_ordered():
    env = WebEnv(name="prod", api_url="https://api.example.com")
    assert config_to_json(env) == '{"name":"prod","api_url":"https://api.example.com","debug":false}'
    assert config_to_json(Settings()) == '{"zeta":1,"alpha":["a"]}'
    assert config_to_json({"b": 1, "a": [1, 2]}) == '{"b":1,"a":[1,2]}'


def test_json_cannot_close_script_element(dist):
    payload = {"html": "</script><script>alert(1)</script>", "amp": "a&b"}
    snapshot = inject_web_env(DirectorySource(dist), payload, "APP_ENV")

    html = snapshot.read("index.html").decode()
    assert html.count("</script>") == 1
    assert "\\u003c/script\\u003e" in html
    assert "a\\u0026b" in html


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_float_has_no_json_representation(dist, value):
    with pytest.raises(ConfigSerializationFailed):
        config_to_json({"x": value})
    with pytest.raises(ConfigSerializationFailed):
        inject_web_env(DirectorySource(dist), {"x": [1.0, value]}, "APP_ENV")
