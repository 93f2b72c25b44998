from unittest import mock

import requests

from mockup_client import MockupClient


def _ok(**attrs):
    r = mock.Mock()
    r.raise_for_status.return_value = None
    for k, v in attrs.items():
        setattr(r, k, v)
    return r


def test_list_garments():
    session = mock.Mock(spec=requests.Session)
    session.get.return_value = _ok(json=lambda: {"success": True, "data": {"tshirt": {}}})
    client = MockupClient("http://api.test/", session=session)
    assert client.list_garments() == {"tshirt": {}}
    session.get.assert_called_once_with("http://api.test/v1/garments", timeout=30)


def test_preview_and_create(tmp_path):
    session = mock.Mock(spec=requests.Session)
    session.get.return_value = _ok(content=b"png")
    session.post.return_value = _ok(json=lambda: {"filename": "x.png", "mockup": True})
    client = MockupClient("http://api.test", session=session)

    assert client.garment_preview("tshirt", "back", "#ff0000") == b"png"
    session.get.assert_called_with(
        "http://api.test/v1/garments/tshirt/back/image", params={"color": "#ff0000"}, timeout=60
    )

    design = tmp_path / "d.png"
    design.write_bytes(b"data")
    assert client.create_mockup(str(design), "tshirt")["filename"] == "x.png"
    args, kwargs = session.post.call_args
    assert args[0] == "http://api.test/v1/mockups"
    assert kwargs["data"] == {"garment": "tshirt", "side": "front", "color": "#ffffff"}

    out = client.download_result_to("x.png", str(tmp_path / "out" / "x.png"))
    assert (tmp_path / "out" / "x.png").read_bytes() == b"png"
    assert out.endswith("x.png")
