"""Connectivity probing for the model server."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from errors import InferenceError, user_message
from interfaces import InferenceClient
from models import ConnectivityState
from settings_store import SettingsStore

logger = logging.getLogger("clip_prompt.monitor")

ChangeCallback = Callable[[ConnectivityState], None]


class ConnectionMonitor:
    def __init__(
        self,
        client: InferenceClient,
        settings: SettingsStore,
        on_change: Optional[ChangeCallback] = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._on_change = on_change
        self._state = ConnectivityState.unknown()
        self._probe_lock = threading.Lock()
        self._async_lock = threading.Lock()
        self._probe_thread: Optional[threading.Thread] = None
        self._periodic_stop = threading.Event()
        self._periodic_thread: Optional[threading.Thread] = None

    def current_state(self) -> ConnectivityState:
        return self._state

    def probe(self) -> ConnectivityState:
        """Probe the server now and return the resulting state."""
        with self._probe_lock:
            try:
                self._client.test_connection()
                models = self._client.list_models()
            except InferenceError as exc:
                reason = user_message(exc.code, exc.message)
                logger.warning("Probe failed: %s", exc)
                new_state = ConnectivityState.disconnected(reason)
            else:
                logger.info("Server connected, %d models", len(models))
                new_state = ConnectivityState.connected(tuple(models))
                self._settings.reconcile_model(models)
            self._set_state(new_state)
            return new_state

    def probe_async(self) -> None:
        """Probe on a background thread; coalesces with a probe already running."""
        with self._async_lock:
            thread = self._probe_thread
            if thread is not None and thread.is_alive():
                return
            self._probe_thread = threading.Thread(target=self._safe_probe, daemon=True)
            self._probe_thread.start()

    def start_periodic(self, interval_s: float) -> None:
        if interval_s <= 0:
            return
        if self._periodic_thread is not None and self._periodic_thread.is_alive():
            return
        self._periodic_stop.clear()

        def _loop() -> None:
            while not self._periodic_stop.wait(interval_s):
                self._safe_probe()

        self._periodic_thread = threading.Thread(target=_loop, daemon=True)
        self._periodic_thread.start()

    def stop(self) -> None:
        self._periodic_stop.set()
        thread = self._periodic_thread
        if thread is not None and thread.is_alive():
            thread.join(timeout=0.5)
        self._periodic_thread = None

    def _safe_probe(self) -> None:
        try:
            self.probe()
        except Exception:  # pragma: no cover - defensive
            logger.exception("Probe crashed")

    def _set_state(self, new_state: ConnectivityState) -> None:
        self._state = new_state
        if self._on_change:
            self._on_change(new_state)
