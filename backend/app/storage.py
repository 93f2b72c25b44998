import os
from typing import Optional


STORAGE_ROOT = os.environ.get("MOCKUP_STORAGE", "storage")
RESULTS_DIR = os.path.join(STORAGE_ROOT, "results")


def _safe_name(filename: str) -> str:
    name = os.path.basename(filename.replace("\\", "/"))
    if not name or name in (".", ".."):
        raise ValueError(f"Invalid result filename: {filename!r}")
    return name


class Storage:
    @staticmethod
    def ensure_dirs() -> None:
        os.makedirs(RESULTS_DIR, exist_ok=True)

    @staticmethod
    def save_result_bytes(data: bytes, filename: str) -> str:
        Storage.ensure_dirs()
        path = os.path.join(RESULTS_DIR, _safe_name(filename))
        tmp = path + ".part"
        # Write then rename so readers never see a half-written export
        with open(tmp, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
        return path

    @staticmethod
    def result_path(filename: str) -> Optional[str]:
        try:
            path = os.path.join(RESULTS_DIR, _safe_name(filename))
        except ValueError:
            return None
        return path if os.path.isfile(path) else None
