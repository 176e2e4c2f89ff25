from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QFrame, QHBoxLayout, QLabel

from meter_dashboard.ui.adapters.store_snapshots import HeaderStatus
from meter_dashboard.ui.theme import CARD, COLOR_CRIT, COLOR_INFO, COLOR_OK, COLOR_TEXT_MUTED, COLOR_WARN


class StatusIndicator(QFrame):
    """
    Header status widget: colored dot + alarm counters + speech/mute/force-stop tags.
    """

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.setObjectName(CARD)

        self._dot = QLabel("●")
        self._dot.setStyleSheet(f"color: {COLOR_OK}; font-size: 16px;")
        self._text = QLabel("No active alarms")
        self._text.setStyleSheet(f"color: {COLOR_TEXT_MUTED}; font-weight: 600;")

        self._speaking = QLabel("Speaking...")
        self._speaking.setStyleSheet(f"color: {COLOR_INFO}; font-weight: 600;")
        self._muted = QLabel("Voice muted")
        self._muted.setStyleSheet(f"color: {COLOR_WARN}; font-weight: 600;")
        self._stopped = QLabel("Force stop engaged")
        self._stopped.setStyleSheet(f"color: {COLOR_CRIT}; font-weight: 600;")

        layout = QHBoxLayout(self)
        layout.setContentsMargins(12, 10, 12, 10)
        layout.addWidget(self._dot, 0, Qt.AlignVCenter)
        layout.addWidget(self._text, 0, Qt.AlignVCenter)
        layout.addSpacing(12)
        layout.addWidget(self._speaking, 0, Qt.AlignVCenter)
        layout.addWidget(self._muted, 0, Qt.AlignVCenter)
        layout.addWidget(self._stopped, 0, Qt.AlignVCenter)
        layout.addStretch(1)

    def set_status(self, status: HeaderStatus) -> None:
        color = COLOR_OK
        if status.level == "WARNING":
            color = COLOR_WARN
        elif status.level == "CRITICAL":
            color = COLOR_CRIT

        self._dot.setStyleSheet(f"color: {color}; font-size: 16px;")
        self._text.setText(status.text)
        self._speaking.setVisible(status.speaking)
        self._muted.setVisible(not status.voice_enabled)
        self._stopped.setVisible(status.force_stop)
