"""Simple JSON-based config store."""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any

from inference import DEFAULT_SERVER_URL

DEFAULT_HOTKEY = "<ctrl>+<alt>+e"
SERVER_URL_ENV = "CLIP_PROMPT_SERVER_URL"


def default_config_dir() -> Path:
    return Path.home() / ".config" / "clip_prompt"


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_config_dir() / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Key-value access (settings persistence)
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        return self._read_all().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if key not in data:
                return
            del data[key]
            self._write_all(data)

    # ------------------------------------------------------------------
    # Typed app options
    # ------------------------------------------------------------------

    def get_server_url(self) -> str:
        env_value = os.getenv(SERVER_URL_ENV, "")
        if env_value:
            return env_value
        return str(self.get("server_url", DEFAULT_SERVER_URL) or DEFAULT_SERVER_URL)

    def set_server_url(self, url: str) -> None:
        self.set("server_url", url)

    def get_hotkey(self) -> str:
        return str(self.get("hotkey", DEFAULT_HOTKEY) or DEFAULT_HOTKEY)

    def set_hotkey(self, hotkey: str) -> None:
        self.set("hotkey", hotkey)

    def get_request_timeout_s(self) -> float:
        return self._get_float("request_timeout_s", 60.0)

    def get_probe_timeout_s(self) -> float:
        return self._get_float("probe_timeout_s", 5.0)

    def get_probe_interval_s(self) -> float:
        return self._get_float("probe_interval_s", 0.0)

    def get_debug(self) -> bool:
        return bool(self.get("debug", False))

    def _get_float(self, key: str, default: float) -> float:
        value = self.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
