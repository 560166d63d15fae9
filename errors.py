"""Shared error codes, user-facing messages and typed exceptions."""

from __future__ import annotations

from typing import Optional

# Clipboard
CLIPBOARD_EMPTY = "CLIPBOARD_EMPTY"
CLIPBOARD_PERMISSION_DENIED = "CLIPBOARD_PERMISSION_DENIED"
CLIPBOARD_NON_TEXT = "CLIPBOARD_NON_TEXT"

# Inference
INFERENCE_TIMEOUT = "INFERENCE_TIMEOUT"
UNREACHABLE = "UNREACHABLE"
EMPTY_RESULT = "EMPTY_RESULT"
NO_MODEL_AVAILABLE = "NO_MODEL_AVAILABLE"
SERVER_ERROR = "SERVER_ERROR"
BUSY = "BUSY"

# Hotkey
HOTKEY_ALREADY_REGISTERED = "HOTKEY_ALREADY_REGISTERED"
HOTKEY_PERMISSION_DENIED = "HOTKEY_PERMISSION_DENIED"
HOTKEY_UNSUPPORTED_COMBO = "HOTKEY_UNSUPPORTED_COMBO"
HOTKEY_UNAVAILABLE = "HOTKEY_UNAVAILABLE"

ERROR_MESSAGES = {
    CLIPBOARD_EMPTY: "Copy some text first.",
    CLIPBOARD_PERMISSION_DENIED: "Clipboard access was denied.",
    CLIPBOARD_NON_TEXT: "Copy some text first.",
    INFERENCE_TIMEOUT: "The model server took too long to answer.",
    UNREACHABLE: "Model server is not reachable. Is Ollama running?",
    EMPTY_RESULT: "The model returned an empty result.",
    NO_MODEL_AVAILABLE: "No model is available on the server.",
    SERVER_ERROR: "The model server reported an error.",
    BUSY: "Already enhancing, please wait.",
    HOTKEY_ALREADY_REGISTERED: "The hotkey is already registered.",
    HOTKEY_PERMISSION_DENIED: "Permission is required to listen for global hotkeys.",
    HOTKEY_UNSUPPORTED_COMBO: "The hotkey combination is not supported.",
    HOTKEY_UNAVAILABLE: "Global hotkeys are not available on this system.",
}


class ClipPromptError(Exception):
    """Base error carrying a code from this module."""

    def __init__(self, code: str, message: str = "") -> None:
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, code)
        super().__init__(f"{code}: {self.message}")


class ClipboardError(ClipPromptError):
    pass


class InferenceError(ClipPromptError):
    def __init__(self, code: str, message: str = "", status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(code, message)


class HotkeyError(ClipPromptError):
    pass


def user_message(code: str, detail: str = "") -> str:
    """Message shown to the user for an error code."""
    base = ERROR_MESSAGES.get(code, code)
    if detail and detail != base:
        return f"{base} ({detail})"
    return base
