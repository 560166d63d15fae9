from __future__ import annotations

import threading
import time
from typing import List, Optional, Tuple

from enhancement_controller import MSG_BUSY, MSG_COPY_FIRST, MSG_ENHANCING, MSG_SUCCESS, EnhancementController
from errors import (
    BUSY,
    CLIPBOARD_EMPTY,
    CLIPBOARD_NON_TEXT,
    CLIPBOARD_PERMISSION_DENIED,
    EMPTY_RESULT,
    INFERENCE_TIMEOUT,
    NO_MODEL_AVAILABLE,
    UNREACHABLE,
    ClipboardError,
    InferenceError,
)
from models import ControllerState, NotificationKind
from prompts import DEFAULT_SYSTEM_PROMPT
from settings_store import SettingsStore


class FakeClient:
    def __init__(self, reply: str = "enhanced", error: Optional[InferenceError] = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: List[Tuple[str, str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.release: Optional[threading.Event] = None
        self.entered = threading.Event()
        self._lock = threading.Lock()

    def enhance(self, text: str, model_id: str, system_prompt: str) -> str:
        with self._lock:
            self.calls.append((text, model_id, system_prompt))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.entered.set()
        try:
            if self.release is not None:
                self.release.wait(timeout=2.0)
            if self.error is not None:
                raise self.error
            return self.reply
        finally:
            with self._lock:
                self.in_flight -= 1

    def list_models(self) -> List[str]:
        return []

    def test_connection(self) -> None:
        return None


class FakeClipboard:
    def __init__(self, text: str = "", read_error: Optional[ClipboardError] = None) -> None:
        self.text = text
        self.read_error = read_error
        self.write_error: Optional[ClipboardError] = None
        self.writes: List[str] = []

    def read_text(self) -> str:
        if self.read_error is not None:
            raise self.read_error
        return self.text

    def write_text(self, text: str) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.writes.append(text)
        self.text = text


class FakeNotifier:
    def __init__(self) -> None:
        self.messages: List[Tuple[NotificationKind, str]] = []

    def notify(self, kind: NotificationKind, message: str) -> None:
        self.messages.append((kind, message))


class FakeMonitor:
    def __init__(self) -> None:
        self.reprobes = 0

    def probe_async(self) -> None:
        self.reprobes += 1


def _controller(
    client: FakeClient,
    clipboard: FakeClipboard,
    notifier: FakeNotifier,
    monitor: Optional[FakeMonitor] = None,
    model: Optional[str] = "m1",
    on_state_change=None,  # noqa: ANN001
    settings: Optional[SettingsStore] = None,
) -> EnhancementController:
    return EnhancementController(
        client=client,
        settings=settings or SettingsStore(default_model=model),
        clipboard=clipboard,
        notifier=notifier,
        monitor=monitor,  # type: ignore[arg-type]
        on_state_change=on_state_change,
    )


def test_happy_path_replaces_clipboard() -> None:
    client = FakeClient(reply="Please correct the grammar of my text.")
    clipboard = FakeClipboard("fix my grammar pls")
    notifier = FakeNotifier()
    transitions: List[Tuple[ControllerState, ControllerState]] = []

    controller = _controller(client, clipboard, notifier, on_state_change=lambda f, t: transitions.append((f, t)))
    result = controller.handle_trigger()

    assert result.success is True
    assert result.text == "Please correct the grammar of my text."
    assert client.calls == [("fix my grammar pls", "m1", DEFAULT_SYSTEM_PROMPT)]
    assert clipboard.text == "Please correct the grammar of my text."
    assert notifier.messages == [
        (NotificationKind.INFO, MSG_ENHANCING),
        (NotificationKind.SUCCESS, MSG_SUCCESS),
    ]
    assert transitions == [
        (ControllerState.IDLE, ControllerState.ENHANCING),
        (ControllerState.ENHANCING, ControllerState.IDLE),
    ]
    assert controller.state == ControllerState.IDLE
    assert controller.last_result_text == result.text


def test_source_text_is_trimmed() -> None:
    client = FakeClient()
    controller = _controller(client, FakeClipboard("\n  hello world \t"), FakeNotifier())

    controller.handle_trigger()

    assert client.calls[0][0] == "hello world"


def test_empty_clipboard_skips_inference() -> None:
    client = FakeClient()
    clipboard = FakeClipboard("   ")
    notifier = FakeNotifier()

    result = _controller(client, clipboard, notifier).handle_trigger()

    assert result.success is False
    assert result.code == CLIPBOARD_EMPTY
    assert client.calls == []
    assert clipboard.writes == []
    assert notifier.messages == [(NotificationKind.WARNING, MSG_COPY_FIRST)]


def test_non_text_clipboard_asks_for_text() -> None:
    client = FakeClient()
    notifier = FakeNotifier()
    clipboard = FakeClipboard(read_error=ClipboardError(CLIPBOARD_NON_TEXT))

    result = _controller(client, clipboard, notifier).handle_trigger()

    assert result.code == CLIPBOARD_NON_TEXT
    assert client.calls == []
    assert notifier.messages == [(NotificationKind.WARNING, MSG_COPY_FIRST)]


def test_clipboard_permission_denied_is_reported() -> None:
    client = FakeClient()
    notifier = FakeNotifier()
    clipboard = FakeClipboard(read_error=ClipboardError(CLIPBOARD_PERMISSION_DENIED, "no display"))

    result = _controller(client, clipboard, notifier).handle_trigger()

    assert result.code == CLIPBOARD_PERMISSION_DENIED
    assert client.calls == []
    assert notifier.messages[0][0] == NotificationKind.ERROR


def test_inference_failure_leaves_clipboard_and_reprobes() -> None:
    client = FakeClient(error=InferenceError(UNREACHABLE, "connection refused"))
    clipboard = FakeClipboard("original text")
    notifier = FakeNotifier()
    monitor = FakeMonitor()

    controller = _controller(client, clipboard, notifier, monitor=monitor)
    result = controller.handle_trigger()

    assert result.success is False
    assert result.code == UNREACHABLE
    assert clipboard.text == "original text"
    assert clipboard.writes == []
    assert monitor.reprobes == 1
    assert notifier.messages[0] == (NotificationKind.INFO, MSG_ENHANCING)
    assert notifier.messages[1][0] == NotificationKind.ERROR
    assert controller.state == ControllerState.IDLE


def test_timeout_and_empty_result_are_distinct_failures() -> None:
    for code in (INFERENCE_TIMEOUT, EMPTY_RESULT):
        client = FakeClient(error=InferenceError(code))
        clipboard = FakeClipboard("text")
        result = _controller(client, clipboard, FakeNotifier(), monitor=FakeMonitor()).handle_trigger()
        assert result.code == code
        assert clipboard.text == "text"


def test_no_model_fails_fast_without_network() -> None:
    client = FakeClient()
    clipboard = FakeClipboard("hello")
    notifier = FakeNotifier()
    monitor = FakeMonitor()
    settings = SettingsStore(default_model="m1")
    settings.reconcile_model([])
    controller = _controller(client, clipboard, notifier, monitor=monitor, settings=settings)

    result = controller.handle_trigger()
    manual = controller.enhance_manually("hello")

    assert result.code == NO_MODEL_AVAILABLE
    assert manual.code == NO_MODEL_AVAILABLE
    assert client.calls == []
    assert monitor.reprobes == 0
    assert clipboard.text == "hello"


def test_clipboard_write_failure_returns_to_idle() -> None:
    client = FakeClient(reply="better")
    clipboard = FakeClipboard("good")
    clipboard.write_error = ClipboardError(CLIPBOARD_PERMISSION_DENIED)
    notifier = FakeNotifier()

    controller = _controller(client, clipboard, notifier)
    result = controller.handle_trigger()

    assert result.success is False
    assert result.code == CLIPBOARD_PERMISSION_DENIED
    assert clipboard.text == "good"
    assert notifier.messages[-1][0] == NotificationKind.ERROR
    assert controller.state == ControllerState.IDLE


def test_manual_enhancement_does_not_touch_clipboard() -> None:
    client = FakeClient(reply="A detailed prompt.")
    clipboard = FakeClipboard("clipboard text")

    controller = _controller(client, clipboard, FakeNotifier())
    result = controller.enhance_manually("  a prompt ")

    assert result.success is True
    assert result.text == "A detailed prompt."
    assert client.calls[0][0] == "a prompt"
    assert clipboard.writes == []


def test_manual_enhancement_rejects_blank_text() -> None:
    client = FakeClient()

    result = _controller(client, FakeClipboard(), FakeNotifier()).enhance_manually("  ")

    assert result.success is False
    assert client.calls == []


def test_enhancing_already_enhanced_output_is_allowed() -> None:
    client = FakeClient(reply="second pass")
    clipboard = FakeClipboard("first")
    controller = _controller(client, clipboard, FakeNotifier())

    controller.handle_trigger()
    client.reply = "third pass"
    controller.handle_trigger()

    assert [c[0] for c in client.calls] == ["first", "second pass"]
    assert clipboard.text == "third pass"


def test_triggers_while_enhancing_are_rejected() -> None:
    client = FakeClient(reply="done")
    client.release = threading.Event()
    clipboard = FakeClipboard("text")
    notifier = FakeNotifier()
    controller = _controller(client, clipboard, notifier)
    controller.start()

    try:
        assert controller.post_trigger() is True
        assert client.entered.wait(timeout=1.0)
        assert controller.state == ControllerState.ENHANCING

        rejected = [controller.post_trigger() for _ in range(5)]
        manual = controller.enhance_manually("other text")
        direct = controller.handle_trigger()

        client.release.set()
        deadline = time.time() + 2.0
        while clipboard.writes == [] and time.time() < deadline:
            time.sleep(0.02)
    finally:
        controller.stop()

    assert rejected == [False] * 5
    assert manual.code == BUSY
    assert direct.code == BUSY
    assert len(client.calls) == 1
    assert client.max_in_flight == 1
    assert clipboard.writes == ["done"]
    assert notifier.messages.count((NotificationKind.INFO, MSG_BUSY)) == 7


def test_concurrent_entry_points_never_overlap() -> None:
    client = FakeClient(reply="x")
    client.release = threading.Event()
    controller = _controller(client, FakeClipboard("text"), FakeNotifier())
    controller.start()

    def fire() -> None:
        for _ in range(20):
            controller.post_trigger()
            controller.enhance_manually("manual")

    threads = [threading.Thread(target=fire) for _ in range(4)]
    try:
        for thread in threads:
            thread.start()
        time.sleep(0.1)
        client.release.set()
        for thread in threads:
            thread.join(timeout=5.0)
        deadline = time.time() + 2.0
        while controller.state != ControllerState.IDLE and time.time() < deadline:
            time.sleep(0.02)
    finally:
        controller.stop()

    assert client.max_in_flight == 1
    assert len(client.calls) >= 1


def test_gate_is_released_after_each_run() -> None:
    client = FakeClient(reply="r")
    clipboard = FakeClipboard("text")
    controller = _controller(client, clipboard, FakeNotifier())
    controller.start()

    try:
        for i in range(3):
            deadline = time.time() + 2.0
            while not controller.post_trigger() and time.time() < deadline:
                time.sleep(0.01)
            while len(clipboard.writes) < i + 1 and time.time() < deadline:
                time.sleep(0.01)
    finally:
        controller.stop()

    assert len(client.calls) == 3
    assert len(clipboard.writes) == 3
