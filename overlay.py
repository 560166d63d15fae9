"""Toast-style overlay used as the notification surface."""

from __future__ import annotations

from models import NotificationKind

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QWidget, QVBoxLayout
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QWidget = object  # type: ignore
    QVBoxLayout = object  # type: ignore


KIND_COLORS = {
    NotificationKind.INFO: "white",
    NotificationKind.SUCCESS: "#7CE38B",
    NotificationKind.WARNING: "#FFC857",
    NotificationKind.ERROR: "#FF6B6B",
}

# Info toasts (e.g. "Enhancing…") stay up until the next message replaces them.
KIND_HIDE_AFTER_MS = {
    NotificationKind.INFO: 0,
    NotificationKind.SUCCESS: 1800,
    NotificationKind.WARNING: 2200,
    NotificationKind.ERROR: 3500,
}


def _style_for(kind: NotificationKind) -> str:
    return (
        f"color: {KIND_COLORS[kind]}; font-size: 16px; padding: 14px;"
        "background: rgba(0,0,0,200); border-radius: 12px;"
    )


class OverlayWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setAttribute(Qt.WA_ShowWithoutActivating, True)
        self.setFixedWidth(420)

        self._label = QLabel("")
        self._label.setWordWrap(True)
        self._label.setStyleSheet(_style_for(NotificationKind.INFO))

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._label)
        self.setLayout(layout)

        self._hide_timer: QTimer | None = None

    def _place_bottom_right(self) -> None:
        if QApplication is None:
            return
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        x = geom.x() + geom.width() - self.width() - 24
        y = geom.y() + geom.height() - self.height() - 24
        self.move(x, y)

    def show_message(self, kind: NotificationKind, text: str) -> None:
        """Show ``text`` styled for ``kind``; non-info messages auto-hide."""
        self._cancel_hide_timer()
        self._label.setStyleSheet(_style_for(kind))
        self._label.setText(text)
        self._place_bottom_right()
        self.show()
        hide_after = KIND_HIDE_AFTER_MS[kind]
        if hide_after:
            self.hide_with_delay(hide_after)

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        self._cancel_hide_timer()
        if QTimer is not None:
            self._hide_timer = QTimer()
            self._hide_timer.setSingleShot(True)
            self._hide_timer.timeout.connect(self.hide)
            self._hide_timer.start(delay_ms)

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None
