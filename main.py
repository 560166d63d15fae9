"""Application entrypoint."""

from __future__ import annotations

import logging
import sys
import threading

from clipboard import PyperclipClipboard
from config import JsonConfigStore
from connection_monitor import ConnectionMonitor
from enhancement_controller import EnhancementController
from errors import ClipboardError, HotkeyError, user_message
from hotkey import GlobalHotkeyAdapter
from inference import OllamaInferenceClient
from interfaces import HotkeyListener
from log import setup_logging
from models import ConnectivityState, ConnectivityStatus, ControllerState, EnhancementResult, NotificationKind
from overlay import OverlayWindow
from settings_store import SettingsStore

try:
    from PySide6.QtCore import QObject, Signal, QSize
    from PySide6.QtGui import QAction, QActionGroup, QIcon, QPixmap, QPainter, QColor, QBrush
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenu, QMessageBox, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger("clip_prompt.app")

DEFAULT_MODEL = "mistral:7b"


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_UNKNOWN = "#888888"       # grey
ICON_CONNECTED = "#35A853"     # green
ICON_DISCONNECTED = "#FF8800"  # orange
ICON_ENHANCING = "#3B82F6"     # blue


class UIBridge(QObject):
    notify_signal = Signal(str, str)  # kind, message
    state_signal = Signal(str, str)  # from_state, to_state
    connectivity_signal = Signal(object)
    manual_result_signal = Signal(object)


class SignalNotifier:
    """Notifier that hands messages to the Qt thread."""

    def __init__(self, bridge: UIBridge) -> None:
        self._bridge = bridge

    def notify(self, kind: NotificationKind, message: str) -> None:
        logger.debug("Notify %s: %s", kind.value, message)
        self._bridge.notify_signal.emit(kind.value, message)


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store = JsonConfigStore()
        setup_logging(self.config_store.path.parent / "clip_prompt.log", debug=self.config_store.get_debug())

        self.overlay = OverlayWindow()
        self.ui = UIBridge()
        self.ui.notify_signal.connect(self._on_notify_ui)
        self.ui.state_signal.connect(self._on_state_change_ui)
        self.ui.connectivity_signal.connect(self._on_connectivity_ui)
        self.ui.manual_result_signal.connect(self._on_manual_result_ui)

        self.settings = SettingsStore(persistence=self.config_store, default_model=DEFAULT_MODEL)
        self.client = self._build_client()
        self.monitor = ConnectionMonitor(
            client=self.client,
            settings=self.settings,
            on_change=self._on_connectivity_change,
        )
        self.controller = EnhancementController(
            client=self.client,
            settings=self.settings,
            clipboard=PyperclipClipboard(),
            notifier=SignalNotifier(self.ui),
            monitor=self.monitor,
            on_state_change=self._on_state_change,
        )
        self.hotkey: HotkeyListener = GlobalHotkeyAdapter()

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_UNKNOWN))
        self.tray.setToolTip("Clip Prompt — Checking server...")
        self._model_menu: QMenu | None = None
        self._model_group: QActionGroup | None = None
        self._setup_menu()
        self.tray.show()

    def _build_client(self) -> OllamaInferenceClient:
        return OllamaInferenceClient(
            base_url=self.config_store.get_server_url(),
            request_timeout_s=self.config_store.get_request_timeout_s(),
            probe_timeout_s=self.config_store.get_probe_timeout_s(),
        )

    def _setup_menu(self) -> None:
        menu = QMenu()

        enhance_action = QAction("Enhance Clipboard Now", menu)
        enhance_action.triggered.connect(self.controller.post_trigger)
        menu.addAction(enhance_action)

        manual_action = QAction("Enhance Text...", menu)
        manual_action.triggered.connect(self._enhance_text)
        menu.addAction(manual_action)

        copy_action = QAction("Copy Last Result", menu)
        copy_action.triggered.connect(self._copy_last_result)
        menu.addAction(copy_action)

        menu.addSeparator()
        self._model_menu = menu.addMenu("Model")
        self._rebuild_model_menu(self.monitor.current_state())

        prompt_action = QAction("Edit System Prompt...", menu)
        prompt_action.triggered.connect(self._edit_system_prompt)
        menu.addAction(prompt_action)

        reset_action = QAction("Reset System Prompt", menu)
        reset_action.triggered.connect(self._reset_system_prompt)
        menu.addAction(reset_action)

        refresh_action = QAction("Refresh Connection", menu)
        refresh_action.triggered.connect(self.monitor.probe_async)
        menu.addAction(refresh_action)

        menu.addSeparator()
        hotkey_action = QAction("Set Hotkey...", menu)
        hotkey_action.triggered.connect(self._set_hotkey)
        menu.addAction(hotkey_action)

        server_action = QAction("Set Server URL...", menu)
        server_action.triggered.connect(self._set_server_url)
        menu.addAction(server_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    def _rebuild_model_menu(self, state: ConnectivityState) -> None:
        if self._model_menu is None:
            return
        self._model_menu.clear()
        self._model_group = QActionGroup(self._model_menu)
        self._model_group.setExclusive(True)
        if not state.models:
            placeholder = QAction("(no models)", self._model_menu)
            placeholder.setEnabled(False)
            self._model_menu.addAction(placeholder)
            return
        active = self.settings.get_active_model()
        for name in state.models:
            action = QAction(name, self._model_menu)
            action.setCheckable(True)
            action.setChecked(name == active)
            action.triggered.connect(lambda _checked=False, n=name: self._select_model(n))
            self._model_group.addAction(action)
            self._model_menu.addAction(action)

    # ------------------------------------------------------------------
    # Menu handlers
    # ------------------------------------------------------------------

    def _select_model(self, name: str) -> None:
        self.settings.set_active_model(name)
        self.overlay.show_message(NotificationKind.INFO, f"Model: {name}")
        self.overlay.hide_with_delay(1200)

    def _enhance_text(self) -> None:
        value, ok = QInputDialog.getMultiLineText(None, "Enhance Text", "Text to enhance")
        if not ok or not value.strip():
            return
        self.overlay.show_message(NotificationKind.INFO, "Enhancing…")

        def _run() -> None:
            result = self.controller.enhance_manually(value)
            self.ui.manual_result_signal.emit(result)

        threading.Thread(target=_run, daemon=True).start()

    def _copy_last_result(self) -> None:
        text = self.controller.last_result_text
        if not text:
            self.overlay.show_message(NotificationKind.WARNING, "Nothing enhanced yet.")
            return
        try:
            PyperclipClipboard().write_text(text)
        except ClipboardError as exc:
            logger.error("Copy last result failed: %s", exc)
            self.overlay.show_message(NotificationKind.ERROR, user_message(exc.code, exc.message))
            return
        self.overlay.show_message(NotificationKind.SUCCESS, "Copied to clipboard.")

    def _edit_system_prompt(self) -> None:
        value, ok = QInputDialog.getMultiLineText(
            None, "System Prompt", "Instructions for the model", self.settings.get_system_prompt()
        )
        if not ok:
            return
        try:
            self.settings.set_system_prompt(value)
        except ValueError as exc:
            QMessageBox.warning(None, "System Prompt", str(exc))
            return
        QMessageBox.information(None, "Saved", "System prompt saved.")

    def _reset_system_prompt(self) -> None:
        self.settings.reset_system_prompt()
        QMessageBox.information(None, "Reset", "System prompt restored to the default.")

    def _set_hotkey(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Hotkey", "Use pynput hotkey format, e.g. <ctrl>+<alt>+e", text=self.config_store.get_hotkey()
        )
        if not ok or not value.strip():
            return
        try:
            self.hotkey.register(value, self.controller.post_trigger)
        except HotkeyError as exc:
            QMessageBox.warning(None, "Hotkey", user_message(exc.code, exc.message))
            return
        self.config_store.set_hotkey(value.strip())
        QMessageBox.information(None, "Saved", "Hotkey saved and applied.")

    def _set_server_url(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Server URL", "Ollama server URL", text=self.config_store.get_server_url()
        )
        if not ok or not value.strip():
            return
        self.config_store.set_server_url(value.strip())
        QMessageBox.information(None, "Saved", "Server URL saved. Restart app to apply.")

    # ------------------------------------------------------------------
    # Callbacks (called from worker threads → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: ControllerState, to_state: ControllerState) -> None:
        self.ui.state_signal.emit(from_state.value, to_state.value)

    def _on_connectivity_change(self, state: ConnectivityState) -> None:
        self.ui.connectivity_signal.emit(state)

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_notify_ui(self, kind: str, message: str) -> None:
        self.overlay.show_message(NotificationKind(kind), message)

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        if to_state == ControllerState.ENHANCING.value:
            self.tray.setIcon(_create_icon(ICON_ENHANCING))
            self.tray.setToolTip("Clip Prompt — Enhancing...")
        else:
            self._on_connectivity_ui(self.monitor.current_state())

    def _on_connectivity_ui(self, state: ConnectivityState) -> None:
        self._rebuild_model_menu(state)
        if self.controller.state == ControllerState.ENHANCING:
            return
        if state.status == ConnectivityStatus.CONNECTED:
            self.tray.setIcon(_create_icon(ICON_CONNECTED))
            self.tray.setToolTip(f"Clip Prompt — {self.settings.get_active_model() or 'no model'}")
        elif state.status == ConnectivityStatus.DISCONNECTED:
            self.tray.setIcon(_create_icon(ICON_DISCONNECTED))
            self.tray.setToolTip(f"Clip Prompt — {state.reason}")
        else:
            self.tray.setIcon(_create_icon(ICON_UNKNOWN))
            self.tray.setToolTip("Clip Prompt — Checking server...")

    def _on_manual_result_ui(self, result: EnhancementResult) -> None:
        if not result.success:
            return
        self.overlay.hide_with_delay(0)
        QInputDialog.getMultiLineText(None, "Enhanced Text", "Result", result.text)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        logger.info("Clip Prompt starting, server %s", self.client.base_url)
        self.controller.start()
        self.monitor.probe_async()
        self.monitor.start_periodic(self.config_store.get_probe_interval_s())
        combo = self.config_store.get_hotkey()
        try:
            self.hotkey.register(combo, self.controller.post_trigger)
        except HotkeyError as exc:
            logger.error("Hotkey %s unavailable, manual enhancement only: %s", combo, exc)
            self.overlay.show_message(
                NotificationKind.ERROR,
                f"Hotkey disabled: {user_message(exc.code, exc.message)}",
            )
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.unregister()
        self.monitor.stop()
        self.controller.stop()
        self.app.quit()


def main() -> int:
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
