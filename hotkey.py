"""Global hotkey adapter based on pynput."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from errors import (
    HOTKEY_ALREADY_REGISTERED,
    HOTKEY_PERMISSION_DENIED,
    HOTKEY_UNAVAILABLE,
    HOTKEY_UNSUPPORTED_COMBO,
    HotkeyError,
)

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore

logger = logging.getLogger("clip_prompt.hotkey")


class GlobalHotkeyAdapter:
    """Keeps exactly one system-wide hotkey registered at a time.

    Combos use pynput's syntax, e.g. ``<ctrl>+<alt>+e``. The callback runs on
    pynput's listener thread and must not block for long.
    """

    def __init__(self) -> None:
        self._listener: Optional[object] = None
        self._combo: Optional[str] = None
        self._callback: Optional[Callable[[], None]] = None
        self._lock = threading.Lock()

    @property
    def current_combo(self) -> Optional[str]:
        return self._combo

    def register(self, combo: str, callback: Callable[[], None]) -> None:
        if keyboard is None:
            raise HotkeyError(HOTKEY_UNAVAILABLE, "pynput is not installed")
        combo = combo.strip()
        try:
            keyboard.HotKey.parse(combo)
        except ValueError as exc:
            raise HotkeyError(HOTKEY_UNSUPPORTED_COMBO, f"{combo!r}: {exc}") from exc

        with self._lock:
            if self._listener is not None and combo == self._combo:
                if callback == self._callback:
                    return
                raise HotkeyError(HOTKEY_ALREADY_REGISTERED, combo)

            self._stop_listener()

            def _fire() -> None:
                try:
                    callback()
                except Exception:
                    logger.exception("Hotkey callback failed")

            listener = keyboard.GlobalHotKeys({combo: _fire})
            try:
                listener.start()
            except Exception as exc:
                raise HotkeyError(HOTKEY_PERMISSION_DENIED, str(exc)) from exc
            self._listener = listener
            self._combo = combo
            self._callback = callback
        logger.info("Hotkey registered: %s", combo)

    def unregister(self) -> None:
        with self._lock:
            self._stop_listener()

    def _stop_listener(self) -> None:
        listener = self._listener
        if listener is None:
            return
        listener.stop()
        logger.info("Hotkey unregistered: %s", self._combo)
        self._listener = None
        self._combo = None
        self._callback = None
