"""State-machine based enhancement orchestration.

One gate guards "one inference call in flight at a time" for both entry
points: clipboard triggers (hotkey or tray) and manual text enhancement.
A trigger that arrives while the gate is held is rejected, never queued
behind the running request.
"""

from __future__ import annotations

import logging
import threading
from queue import Queue
from typing import Callable, Optional

from connection_monitor import ConnectionMonitor
from errors import (
    BUSY,
    CLIPBOARD_EMPTY,
    CLIPBOARD_NON_TEXT,
    ERROR_MESSAGES,
    NO_MODEL_AVAILABLE,
    ClipboardError,
    InferenceError,
    user_message,
)
from interfaces import Clipboard, InferenceClient, Notifier
from models import ControllerState, EnhancementRequest, EnhancementResult, NotificationKind
from settings_store import SettingsStore

logger = logging.getLogger("clip_prompt.controller")

StateCallback = Callable[[ControllerState, ControllerState], None]

MSG_ENHANCING = "Enhancing…"
MSG_SUCCESS = "Enhanced, ready to paste."
MSG_COPY_FIRST = ERROR_MESSAGES[CLIPBOARD_EMPTY]
MSG_BUSY = ERROR_MESSAGES[BUSY]

_TRIGGER = "trigger"
_STOP = None


class EnhancementController:
    def __init__(
        self,
        client: InferenceClient,
        settings: SettingsStore,
        clipboard: Clipboard,
        notifier: Notifier,
        monitor: Optional[ConnectionMonitor] = None,
        on_state_change: Optional[StateCallback] = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._clipboard = clipboard
        self._notifier = notifier
        self._monitor = monitor
        self._on_state_change = on_state_change

        self._gate = threading.Lock()
        self._state_lock = threading.Lock()
        self._state = ControllerState.IDLE
        self._request_id = 0
        self._events: Queue[Optional[str]] = Queue()
        self._worker: Optional[threading.Thread] = None

        self.last_source_text: Optional[str] = None
        self.last_result_text: Optional[str] = None

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def request_id(self) -> int:
        return self._request_id

    # ------------------------------------------------------------------
    # Event loop for OS-thread triggers
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._worker and self._worker.is_alive():
            return
        self._worker = threading.Thread(target=self._run_loop, daemon=True)
        self._worker.start()

    def stop(self) -> None:
        worker = self._worker
        if worker is None:
            return
        self._events.put(_STOP)
        worker.join(timeout=1.0)
        self._worker = None

    def post_trigger(self) -> bool:
        """Accept a trigger from any thread without blocking.

        Returns False when the trigger was rejected because an enhancement
        is already in flight.
        """
        if not self._gate.acquire(blocking=False):
            self._reject_busy()
            return False
        self._events.put(_TRIGGER)
        return True

    def _run_loop(self) -> None:
        while True:
            event = self._events.get()
            if event is _STOP:
                return
            try:
                self._enhance_clipboard()
            except Exception:  # pragma: no cover - defensive
                logger.exception("Clipboard enhancement crashed")
                self._transition(ControllerState.IDLE)
            finally:
                self._gate.release()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def handle_trigger(self) -> EnhancementResult:
        """Run one clipboard enhancement on the calling thread."""
        if not self._gate.acquire(blocking=False):
            self._reject_busy()
            return EnhancementResult.failure(BUSY, MSG_BUSY)
        try:
            return self._enhance_clipboard()
        finally:
            self._gate.release()

    def enhance_manually(self, text: str) -> EnhancementResult:
        """Enhance ``text`` directly; the clipboard is neither read nor written."""
        source = (text or "").strip()
        if not source:
            return EnhancementResult.failure(CLIPBOARD_EMPTY, MSG_COPY_FIRST)
        if not self._gate.acquire(blocking=False):
            self._reject_busy()
            return EnhancementResult.failure(BUSY, MSG_BUSY)
        try:
            result = self._run_inference(source)
            if result.success:
                self.last_result_text = result.text
            return result
        finally:
            self._gate.release()

    # ------------------------------------------------------------------
    # Internal (gate held)
    # ------------------------------------------------------------------

    def _enhance_clipboard(self) -> EnhancementResult:
        try:
            raw = self._clipboard.read_text()
        except ClipboardError as exc:
            return self._clipboard_failed(exc)

        source = raw.strip()
        if not source:
            return self._clipboard_failed(ClipboardError(CLIPBOARD_EMPTY))

        self._notify(NotificationKind.INFO, MSG_ENHANCING)
        result = self._run_inference(source)
        if not result.success:
            return result

        try:
            self._clipboard.write_text(result.text)
        except ClipboardError as exc:
            logger.error("Clipboard write failed: %s", exc)
            self._notify(NotificationKind.ERROR, user_message(exc.code, exc.message))
            return EnhancementResult.failure(exc.code, exc.message)

        self.last_result_text = result.text
        self._notify(NotificationKind.SUCCESS, MSG_SUCCESS)
        return result

    def _run_inference(self, source: str) -> EnhancementResult:
        model_id = self._settings.get_active_model()
        if not model_id:
            logger.warning("Enhancement requested with no model selected")
            self._notify(NotificationKind.ERROR, user_message(NO_MODEL_AVAILABLE))
            return EnhancementResult.failure(NO_MODEL_AVAILABLE, user_message(NO_MODEL_AVAILABLE))

        self._request_id += 1
        request = EnhancementRequest(
            source_text=source,
            model_id=model_id,
            system_prompt=self._settings.get_system_prompt(),
            request_id=self._request_id,
        )
        self.last_source_text = source
        self._transition(ControllerState.ENHANCING)
        logger.info("Request %d: enhancing %d chars with %s", request.request_id, len(source), model_id)
        try:
            text = self._client.enhance(request.source_text, request.model_id, request.system_prompt)
        except InferenceError as exc:
            self._transition(ControllerState.IDLE)
            return self._inference_failed(request, exc)

        self._transition(ControllerState.IDLE)
        logger.info("Request %d: done, %d chars", request.request_id, len(text))
        return EnhancementResult.ok(text)

    def _inference_failed(self, request: EnhancementRequest, exc: InferenceError) -> EnhancementResult:
        logger.warning("Request %d failed: %s", request.request_id, exc)
        self._notify(NotificationKind.ERROR, user_message(exc.code, exc.message))
        if self._monitor is not None:
            self._monitor.probe_async()
        return EnhancementResult.failure(exc.code, exc.message)

    def _clipboard_failed(self, exc: ClipboardError) -> EnhancementResult:
        if exc.code in (CLIPBOARD_EMPTY, CLIPBOARD_NON_TEXT):
            self._notify(NotificationKind.WARNING, MSG_COPY_FIRST)
        else:
            logger.error("Clipboard read failed: %s", exc)
            self._notify(NotificationKind.ERROR, user_message(exc.code, exc.message))
        return EnhancementResult.failure(exc.code, exc.message)

    def _reject_busy(self) -> None:
        logger.info("Trigger rejected, request %d still in flight", self._request_id)
        self._notify(NotificationKind.INFO, MSG_BUSY)

    def _notify(self, kind: NotificationKind, message: str) -> None:
        try:
            self._notifier.notify(kind, message)
        except Exception:  # pragma: no cover - defensive
            logger.exception("Notifier failed")

    def _transition(self, to_state: ControllerState) -> None:
        with self._state_lock:
            from_state = self._state
            if from_state == to_state:
                return
            self._state = to_state
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
