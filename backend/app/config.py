import os
import yaml
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()


CONFIG_PATH = os.environ.get("MOCKUP_CONFIG", "configs/pipeline.yaml")


class Settings:
    def __init__(self, path: Optional[str] = None, data: Optional[dict[str, Any]] = None) -> None:
        self.path = path or CONFIG_PATH
        self._cfg: dict[str, Any] = {}
        if data is not None:
            self._cfg = data
        elif os.path.exists(self.path):
            with open(self.path, "r", encoding="utf-8") as f:
                self._cfg = yaml.safe_load(f) or {}

    def get(self, key: str, default: Any = None) -> Any:
        # Env wins over YAML
        env_key = key.upper().replace(".", "_")
        if env_key in os.environ:
            return os.environ[env_key]

        # Dot path lookup in YAML
        parts = key.split(".")
        cur: Any = self._cfg
        for p in parts:
            if isinstance(cur, dict) and p in cur:
                cur = cur[p]
            else:
                return default
        return cur


settings = Settings()
