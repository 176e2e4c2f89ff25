from __future__ import annotations

from typing import List

from PySide6.QtWidgets import QFrame, QLabel, QListWidget, QVBoxLayout

from meter_dashboard.ui.theme import CARD


class DebugLogPanel(QFrame):
    """
    Newest-first list of recent log entries.
    """

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.setObjectName(CARD)
        self._entries: List[str] = []

        title = QLabel("Debug Log")
        title.setStyleSheet("font-size: 14px; font-weight: 700;")

        self.list = QListWidget()

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)
        layout.addWidget(title)
        layout.addWidget(self.list)

    def set_entries(self, entries: List[str]) -> None:
        if entries == self._entries:
            return
        self._entries = list(entries)
        self.list.clear()
        self.list.addItems(entries)
