"""System clipboard access through pyperclip."""

from __future__ import annotations

from errors import CLIPBOARD_EMPTY, CLIPBOARD_NON_TEXT, CLIPBOARD_PERMISSION_DENIED, ClipboardError

try:
    import pyperclip
except Exception:  # pragma: no cover
    pyperclip = None  # type: ignore


class PyperclipClipboard:
    def read_text(self) -> str:
        if pyperclip is None:
            raise ClipboardError(CLIPBOARD_PERMISSION_DENIED, "pyperclip is not installed")
        try:
            value = pyperclip.paste()
        except pyperclip.PyperclipException as exc:
            raise ClipboardError(CLIPBOARD_PERMISSION_DENIED, str(exc)) from exc
        if value is None:
            raise ClipboardError(CLIPBOARD_EMPTY)
        if not isinstance(value, str):
            raise ClipboardError(CLIPBOARD_NON_TEXT)
        if not value.strip():
            raise ClipboardError(CLIPBOARD_EMPTY)
        return value

    def write_text(self, text: str) -> None:
        if pyperclip is None:
            raise ClipboardError(CLIPBOARD_PERMISSION_DENIED, "pyperclip is not installed")
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as exc:
            raise ClipboardError(CLIPBOARD_PERMISSION_DENIED, str(exc)) from exc
