"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class ControllerState(str, Enum):
    IDLE = "IDLE"
    ENHANCING = "ENHANCING"


class ConnectivityStatus(str, Enum):
    UNKNOWN = "unknown"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class NotificationKind(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class EnhancementRequest:
    source_text: str
    model_id: str
    system_prompt: str
    request_id: int = 0


@dataclass(frozen=True)
class EnhancementResult:
    success: bool
    text: str = ""
    code: str = ""
    message: str = ""

    @classmethod
    def ok(cls, text: str) -> "EnhancementResult":
        return cls(success=True, text=text)

    @classmethod
    def failure(cls, code: str, message: str = "") -> "EnhancementResult":
        return cls(success=False, code=code, message=message)


@dataclass(frozen=True)
class ConnectivityState:
    status: ConnectivityStatus = ConnectivityStatus.UNKNOWN
    models: Tuple[str, ...] = field(default_factory=tuple)
    reason: str = ""

    @classmethod
    def unknown(cls) -> "ConnectivityState":
        return cls()

    @classmethod
    def connected(cls, models: Tuple[str, ...]) -> "ConnectivityState":
        return cls(status=ConnectivityStatus.CONNECTED, models=tuple(models))

    @classmethod
    def disconnected(cls, reason: str) -> "ConnectivityState":
        return cls(status=ConnectivityStatus.DISCONNECTED, reason=reason)

    @property
    def is_connected(self) -> bool:
        return self.status == ConnectivityStatus.CONNECTED


@dataclass
class Settings:
    selected_model: Optional[str]
    system_prompt: str
