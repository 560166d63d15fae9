"""In-memory authoritative settings: active model and system prompt."""

from __future__ import annotations

import logging
import threading
from typing import Optional, Sequence

from interfaces import SettingsPersistence
from models import Settings
from prompts import DEFAULT_SYSTEM_PROMPT

logger = logging.getLogger("clip_prompt.settings")

MODEL_KEY = "selected_model"
PROMPT_KEY = "system_prompt"


class SettingsStore:
    """Holds the session's settings and mirrors changes to ``persistence``.

    The persistence collaborator is optional; without one the store lives
    only for the current process.
    """

    def __init__(
        self,
        persistence: Optional[SettingsPersistence] = None,
        default_model: Optional[str] = None,
    ) -> None:
        self._persistence = persistence
        self._lock = threading.Lock()

        model = default_model
        prompt = DEFAULT_SYSTEM_PROMPT
        if persistence is not None:
            model = persistence.get(MODEL_KEY, default_model) or default_model
            prompt = persistence.get(PROMPT_KEY, DEFAULT_SYSTEM_PROMPT) or DEFAULT_SYSTEM_PROMPT
        self._settings = Settings(selected_model=model, system_prompt=str(prompt))

    def snapshot(self) -> Settings:
        with self._lock:
            return Settings(
                selected_model=self._settings.selected_model,
                system_prompt=self._settings.system_prompt,
            )

    def get_active_model(self) -> Optional[str]:
        return self._settings.selected_model

    def set_active_model(self, model_id: str) -> None:
        if not model_id or not model_id.strip():
            raise ValueError("model id must not be empty")
        with self._lock:
            self._settings.selected_model = model_id
            self._persist(MODEL_KEY, model_id)
        logger.info("Active model set to %s", model_id)

    def reconcile_model(self, available_models: Sequence[str]) -> Optional[str]:
        """Align the selected model with the server's catalog.

        Keeps the current model when the server still has it, otherwise falls
        back to the first listed model. An empty catalog clears the selection.
        Returns the model that is active afterwards.
        """
        with self._lock:
            current = self._settings.selected_model
            if current and current in available_models:
                return current
            if not available_models:
                if current is not None:
                    logger.warning("No models available, clearing selection %s", current)
                self._settings.selected_model = None
                return None
            fallback = available_models[0]
            logger.info("Model %s not available, falling back to %s", current, fallback)
            self._settings.selected_model = fallback
            self._persist(MODEL_KEY, fallback)
            return fallback

    def get_system_prompt(self) -> str:
        return self._settings.system_prompt

    def set_system_prompt(self, prompt: str) -> None:
        if not prompt or not prompt.strip():
            raise ValueError("system prompt must not be empty")
        with self._lock:
            self._settings.system_prompt = prompt
            self._persist(PROMPT_KEY, prompt)

    def reset_system_prompt(self) -> None:
        with self._lock:
            self._settings.system_prompt = DEFAULT_SYSTEM_PROMPT
            if self._persistence is not None:
                self._persistence.delete(PROMPT_KEY)
        logger.info("System prompt reset to default")

    def _persist(self, key: str, value: str) -> None:
        if self._persistence is not None:
            self._persistence.set(key, value)
