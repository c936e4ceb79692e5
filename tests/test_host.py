from __future__ import annotations

from pathlib import Path

import pytest
from conftest import ALLOWED_ORIGIN
from fastapi.testclient import TestClient

from bootwatcher.config import Settings
from bootwatcher.host import create_host_app, inject_client_config, render_env_script, resolve_asset

INDEX_HTML = "<!DOCTYPE html><html><head><title>BootWatcher</title></head><body><div id=root></div></body></html>"
ENV_SCRIPT = '<script>window.env = {"VITE_MAPS_API_KEY": "maps-key", "VITE_FIREBASE_PROJECT_ID": "bootwatcher-demo"};</script>'


@pytest.fixture
def site(asset_root: Path) -> Path:
    (asset_root / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    (asset_root / "about.html").write_text("<html><head></head><body>about</body></html>", encoding="utf-8")
    (asset_root / "assets").mkdir()
    (asset_root / "assets" / "app.js").write_text("console.log('boot');", encoding="utf-8")
    return asset_root


@pytest.fixture
def client(settings: Settings, site: Path) -> TestClient:
    return TestClient(create_host_app(settings))


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.text == "OK"


def test_root_document_gets_client_config(client: TestClient) -> None:
    resp = client.get("/")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert f"{ENV_SCRIPT}</head>" in resp.text
    assert resp.text.count("window.env") == 1


def test_html_documents_get_client_config(client: TestClient) -> None:
    resp = client.get("/about.html")

    assert resp.status_code == 200
    assert resp.text.startswith("<html><head><script>window.env = ")
    assert "about" in resp.text


def test_static_asset_is_served_untouched(client: TestClient) -> None:
    resp = client.get("/assets/app.js")

    assert resp.status_code == 200
    assert resp.text == "console.log('boot');"


def test_unknown_path_falls_back_to_root_document(client: TestClient) -> None:
    resp = client.get("/lots/42/history")

    assert resp.status_code == 200
    assert "<div id=root></div>" in resp.text
    assert ENV_SCRIPT in resp.text


def test_missing_html_file_falls_back_to_root_document(client: TestClient) -> None:
    resp = client.get("/missing.html")

    assert resp.status_code == 200
    assert "<title>BootWatcher</title>" in resp.text


def test_404_without_root_document(settings: Settings) -> None:
    client = TestClient(create_host_app(settings))

    assert client.get("/").status_code == 404
    assert client.get("/lots/42").status_code == 404


@pytest.mark.parametrize("path", ["/%00", "/lots/%00.js", "/" + "a" * 300])
def test_unusable_paths_fall_back_to_root_document(client: TestClient, path: str) -> None:
    resp = client.get(path)

    assert resp.status_code == 200
    assert "<title>BootWatcher</title>" in resp.text


def test_unusable_paths_without_root_document_are_404(settings: Settings) -> None:
    client = TestClient(create_host_app(settings))

    assert client.get("/%00").status_code == 404
    assert client.get("/" + "a" * 300).status_code == 404


def test_maps_error_page(client: TestClient) -> None:
    resp = client.get("/maps-error")

    assert resp.status_code == 200
    assert "RefererNotAllowedMapError" in resp.text


def test_error_page_builtin(client: TestClient) -> None:
    resp = client.get("/error")

    assert resp.status_code == 200
    assert "Something went wrong" in resp.text


def test_error_page_from_asset_root(client: TestClient, site: Path) -> None:
    (site / "error.html").write_text("<h1>custom outage page</h1>", encoding="utf-8")

    resp = client.get("/error")

    assert resp.status_code == 200
    assert resp.text == "<h1>custom outage page</h1>"


def test_debug_does_not_leak_secrets(
    client: TestClient, site: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TWILIO_API_KEY_SECRET", "super-secret-value")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    resp = client.get("/debug")

    assert resp.status_code == 200
    data = resp.json()
    assert data["port"] == 8080
    assert data["files"] == ["about.html", "assets", "index.html"]
    assert data["env"]["VITE_MAPS_API_KEY"] == "maps-key"
    assert data["env"]["LOG_LEVEL"] == "DEBUG"
    assert "TWILIO_API_KEY_SECRET" not in data["env"]
    assert "super-secret-value" not in resp.text


def test_debug_reports_the_bound_port(settings: Settings, site: Path) -> None:
    client = TestClient(create_host_app(settings, port=9999))

    assert client.get("/debug").json()["port"] == 9999


def test_debug_reports_missing_asset_root(settings: Settings, tmp_path: Path) -> None:
    broken = settings.model_copy(update={"asset_root": tmp_path / "does-not-exist"})
    client = TestClient(create_host_app(broken))

    resp = client.get("/debug")

    assert resp.status_code == 200
    assert resp.json()["files"] == []
    assert "FileNotFoundError" in resp.json()["error"]


def test_debug_is_not_mounted_in_production(settings: Settings, site: Path) -> None:
    prod = settings.model_copy(update={"environment": "production"})
    client = TestClient(create_host_app(prod))

    resp = client.get("/debug")

    # falls through to the single-page app like any other unknown path
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "<div id=root></div>" in resp.text


def test_cors_allow_list(client: TestClient) -> None:
    allowed = client.get("/health", headers={"Origin": ALLOWED_ORIGIN})
    denied = client.get("/health", headers={"Origin": "https://evil.example"})

    assert allowed.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
    assert "access-control-allow-origin" not in denied.headers


def test_large_documents_are_compressed(client: TestClient, site: Path) -> None:
    (site / "big.html").write_text("<html><head></head><body>" + "lot " * 1000 + "</body></html>")

    resp = client.get("/big.html", headers={"Accept-Encoding": "gzip"})

    assert resp.status_code == 200
    assert resp.headers["content-encoding"] == "gzip"
    assert "window.env" in resp.text


def test_inject_only_touches_first_head_close() -> None:
    html = "<head></head><template></head></template>"
    assert inject_client_config(html, {"A": "1"}) == (
        '<head><script>window.env = {"A": "1"};</script></head><template></head></template>'
    )


def test_inject_without_head_is_noop() -> None:
    assert inject_client_config("<p>fragment</p>", {"A": "1"}) == "<p>fragment</p>"


def test_env_script_cannot_close_script_tag() -> None:
    script = render_env_script({"VITE_MAPS_API_KEY": "</script><script>alert(1)</script>"})
    assert script.count("</script>") == 1


def test_resolve_asset_stays_inside_root(site: Path) -> None:
    (site.parent / "secrets.txt").write_text("nope", encoding="utf-8")

    assert resolve_asset(site, "../secrets.txt") is None
    assert resolve_asset(site, "assets/../../secrets.txt") is None
    assert resolve_asset(site, "assets/app.js") == (site / "assets" / "app.js").resolve()
    assert resolve_asset(site, "") == (site / "index.html").resolve()
    assert resolve_asset(site, "assets") is None


def test_resolve_asset_rejects_unusable_names(site: Path) -> None:
    assert resolve_asset(site, "a\x00b") is None
    assert resolve_asset(site, "a" * 300) is None
    assert resolve_asset(site, "/".join(["a" * 200] * 40)) is None
