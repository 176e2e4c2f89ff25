from __future__ import annotations

from typing import List, Tuple

from PySide6.QtCore import Signal
from PySide6.QtWidgets import QFrame, QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from meter_dashboard.domain.models import Alarm
from meter_dashboard.ui.theme import BANNER


class AlarmBanner(QFrame):
    """
    Banner listing active unacknowledged alarms, each with an Acknowledge button.

    Hidden while there is nothing to acknowledge.
    """

    acknowledge_requested = Signal(str)

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.setObjectName(BANNER)
        self._shown: List[Tuple[str, str]] = []

        self._title = QLabel("ACTIVE ALARMS")
        self._title.setStyleSheet("font-size: 14px; font-weight: 700;")

        self._rows = QVBoxLayout()
        self._rows.setSpacing(6)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(8)
        layout.addWidget(self._title)
        layout.addLayout(self._rows)

        self.setVisible(False)

    def set_alarms(self, alarms: List[Alarm]) -> None:
        shown = [(a.id, a.message) for a in alarms]
        if shown == self._shown:
            return
        self._shown = shown

        while self._rows.count():
            item = self._rows.takeAt(0)
            w = item.widget()
            if w is not None:
                w.deleteLater()

        for a in alarms:
            self._rows.addWidget(self._row(a))

        self._title.setText(f"ACTIVE ALARMS ({len(alarms)})")
        self.setVisible(bool(alarms))

    def _row(self, alarm: Alarm) -> QWidget:
        w = QWidget()
        lay = QHBoxLayout(w)
        lay.setContentsMargins(0, 0, 0, 0)

        text = QLabel(f"{alarm.message}  (limit {alarm.limit:g} {alarm.unit}, {alarm.timestamp:%H:%M:%S})")
        btn = QPushButton("Acknowledge")
        btn.clicked.connect(lambda _=False, i=alarm.id: self.acknowledge_requested.emit(i))

        lay.addWidget(text, 1)
        lay.addWidget(btn)
        return w
