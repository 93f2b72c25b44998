import os
from typing import Optional
from urllib.parse import quote

import requests


class MockupClient:
    def __init__(self, base_url: str = "http://127.0.0.1:8000", session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def list_garments(self) -> dict:
        r = self.session.get(f"{self.base_url}/v1/garments", timeout=30)
        r.raise_for_status()
        return r.json()["data"]

    def garment_preview(self, garment: str, side: str = "front", color: str = "#ffffff") -> bytes:
        r = self.session.get(
            f"{self.base_url}/v1/garments/{quote(garment)}/{side}/image",
            params={"color": color},
            timeout=60,
        )
        r.raise_for_status()
        return r.content

    def create_mockup(self, design_path: str, garment: str, side: str = "front", color: str = "#ffffff") -> dict:
        with open(design_path, "rb") as f:
            files = {"design": (os.path.basename(design_path), f, "image/png")}
            data = {"garment": garment, "side": side, "color": color}
            r = self.session.post(f"{self.base_url}/v1/mockups", files=files, data=data, timeout=120)
        r.raise_for_status()
        return r.json()

    def download_result(self, filename: str) -> bytes:
        r = self.session.get(f"{self.base_url}/v1/results/{quote(filename)}", timeout=60)
        r.raise_for_status()
        return r.content

    def download_result_to(self, filename: str, out_path: str) -> str:
        data = self.download_result(filename)
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        with open(out_path, "wb") as f:
            f.write(data)
        return out_path
