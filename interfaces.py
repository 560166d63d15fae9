"""Protocol interfaces used by EnhancementController and its collaborators."""

from __future__ import annotations

from typing import Any, Callable, List, Protocol

from models import NotificationKind


class InferenceClient(Protocol):
    def enhance(self, text: str, model_id: str, system_prompt: str) -> str: ...

    def list_models(self) -> List[str]: ...

    def test_connection(self) -> None: ...


class Clipboard(Protocol):
    def read_text(self) -> str: ...

    def write_text(self, text: str) -> None: ...


class Notifier(Protocol):
    def notify(self, kind: NotificationKind, message: str) -> None: ...


class SettingsPersistence(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class HotkeyListener(Protocol):
    def register(self, combo: str, callback: Callable[[], None]) -> None: ...

    def unregister(self) -> None: ...
