import pytest
from fastapi.testclient import TestClient

from backend.app import main, storage
from backend.app.main import app, get_pipeline


@pytest.fixture
def client(pipeline, tmp_path, monkeypatch):
    monkeypatch.setattr(storage, "RESULTS_DIR", str(tmp_path / "results"))
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_config_exposes_thresholds(client):
    body = client.get("/v1/config").json()
    assert body["chroma_key"]["green_threshold"] == 100.0
    assert body["resample"] == "bilinear"


def test_list_garments(client):
    body = client.get("/v1/garments").json()
    assert body["success"] is True
    assert body["data"]["tshirt"]["printArea"] == {"top": 25.0, "left": 25.0, "width": 50.0, "height": 50.0}
    assert body["data"]["polo"]["imageBack"] == "missing_back.png"


def test_garment_preview_png(client, from_png):
    r = client.get("/v1/garments/tshirt/front/image", params={"color": "#ff0000"})
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/png"
    img = from_png(r.content)
    assert img.pixel(20, 20) == (255, 0, 0, 255)
    assert img.pixel(0, 0)[3] == 0


@pytest.mark.parametrize(
    "path, params, status",
    [
        ("/v1/garments/tshirt/front/image", {"color": "crimson"}, 400),
        ("/v1/garments/tshirt/sleeve/image", {}, 400),
        ("/v1/garments/sweater/front/image", {}, 404),
        ("/v1/garments/ghost/front/image", {}, 502),
        ("/v1/garments/broken/front/image", {}, 422),
    ],
)
def test_garment_preview_errors(client, path, params, status):
    assert client.get(path, params=params).status_code == status


def test_create_mockup_and_download(client, blue_design, to_png, from_png):
    r = client.post(
        "/v1/mockups",
        data={"garment": "tshirt", "side": "front", "color": "#111111"},
        files={"design": ("design.png", to_png(blue_design), "image/png")},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["mockup"] is True
    assert body["filename"].endswith(".png") and "print-tshirt-" in body["filename"]

    r = client.get(f"/v1/results/{body['filename']}")
    assert r.status_code == 200
    assert from_png(r.content).pixel(15, 15) == (0, 0, 255, 255)


def test_create_mockup_falls_back_to_design_only(client, blue_design, to_png):
    r = client.post(
        "/v1/mockups",
        data={"garment": "ghost"},
        files={"design": ("design.png", to_png(blue_design), "image/png")},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["mockup"] is False
    assert "design-" in body["filename"]
    assert body["error"]


def test_create_mockup_rejects_non_image_design(client):
    r = client.post(
        "/v1/mockups",
        data={"garment": "tshirt"},
        files={"design": ("design.png", b"definitely not a png", "image/png")},
    )
    assert r.status_code == 422


def test_missing_result(client):
    assert client.get("/v1/results/nope.png").status_code == 404


def test_metrics_export_garment_cache_lookups(client, pipeline, monkeypatch):
    monkeypatch.setattr(main, "_pipeline", pipeline)
    for _ in range(3):
        assert client.get("/v1/garments/tshirt/front/image").status_code == 200

    text = client.get("/metrics/").text
    assert 'mockup_garment_cache_lookups_total{outcome="miss"} 1.0' in text
    assert 'mockup_garment_cache_lookups_total{outcome="hit"} 2.0' in text
    assert "mockup_previews_total" in text
