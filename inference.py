"""Inference client for an Ollama-compatible model server.

Every call is a single HTTP request with a bounded timeout. Transport and
protocol failures are mapped to :class:`errors.InferenceError` codes; nothing
is retried here, a retry is always a new user trigger.
"""

from __future__ import annotations

import logging
from typing import Any, List

import requests

from errors import (
    EMPTY_RESULT,
    INFERENCE_TIMEOUT,
    NO_MODEL_AVAILABLE,
    SERVER_ERROR,
    UNREACHABLE,
    InferenceError,
)
from prompts import build_user_prompt

logger = logging.getLogger("clip_prompt.inference")

DEFAULT_SERVER_URL = "http://localhost:11434"


class OllamaInferenceClient:
    def __init__(
        self,
        base_url: str = DEFAULT_SERVER_URL,
        request_timeout_s: float = 60.0,
        probe_timeout_s: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._request_timeout_s = request_timeout_s
        self._probe_timeout_s = probe_timeout_s
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url

    def enhance(self, text: str, model_id: str, system_prompt: str) -> str:
        if not model_id:
            raise InferenceError(NO_MODEL_AVAILABLE)
        payload = {
            "model": model_id,
            "prompt": build_user_prompt(text),
            "system": system_prompt,
            "stream": False,
        }
        logger.debug("POST %s/api/generate model=%s chars=%d", self._base_url, model_id, len(text))
        data = self._request("POST", "/api/generate", self._request_timeout_s, json=payload)

        if not isinstance(data, dict):
            raise InferenceError(SERVER_ERROR, "unexpected response shape")
        if data.get("error"):
            raise InferenceError(EMPTY_RESULT, str(data["error"]))
        result = str(data.get("response") or "").strip()
        if not result:
            raise InferenceError(EMPTY_RESULT)
        return result

    def list_models(self) -> List[str]:
        data = self._request("GET", "/api/tags", self._probe_timeout_s)
        if not isinstance(data, dict):
            raise InferenceError(SERVER_ERROR, "unexpected response shape")
        names: List[str] = []
        for entry in data.get("models") or []:
            if isinstance(entry, dict) and entry.get("name"):
                names.append(str(entry["name"]))
        logger.debug("Server reports %d models", len(names))
        return names

    def test_connection(self) -> None:
        try:
            response = self._session.get(self._url("/api/tags"), timeout=self._probe_timeout_s)
        except requests.Timeout as exc:
            raise InferenceError(INFERENCE_TIMEOUT, str(exc)) from exc
        except requests.ConnectionError as exc:
            raise InferenceError(UNREACHABLE, str(exc)) from exc
        except requests.RequestException as exc:
            raise InferenceError(UNREACHABLE, str(exc)) from exc
        if response.status_code >= 400:
            raise InferenceError(
                SERVER_ERROR,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def _request(self, method: str, path: str, timeout: float, **kwargs: Any) -> Any:
        try:
            response = self._session.request(method, self._url(path), timeout=timeout, **kwargs)
        except requests.Timeout as exc:
            logger.warning("%s %s timed out after %.1fs", method, path, timeout)
            raise InferenceError(INFERENCE_TIMEOUT, str(exc)) from exc
        except requests.ConnectionError as exc:
            logger.warning("%s %s unreachable: %s", method, path, exc)
            raise InferenceError(UNREACHABLE, str(exc)) from exc
        except requests.RequestException as exc:
            raise InferenceError(UNREACHABLE, str(exc)) from exc

        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.warning("%s %s failed: HTTP %d %s", method, path, response.status_code, detail)
            raise InferenceError(SERVER_ERROR, detail, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise InferenceError(
                SERVER_ERROR,
                "response is not valid JSON",
                status_code=response.status_code,
            ) from exc


def _error_detail(response: requests.Response) -> str:
    """Pull the server's error message out of a failed response."""
    try:
        data = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"HTTP {response.status_code}"
