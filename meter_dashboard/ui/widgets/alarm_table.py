from __future__ import annotations

from typing import List

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QBrush, QColor
from PySide6.QtWidgets import (
    QAbstractItemView,
    QComboBox,
    QFrame,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from meter_dashboard.ui.adapters.store_snapshots import AlarmRow
from meter_dashboard.ui.theme import CARD, COLOR_CRIT, COLOR_OK, COLOR_WARN, DANGER


class AlarmTable(QFrame):
    """
    Alarm log, newest first, with per-row Ack / Reset actions.

    Signals
    -------
    acknowledge_requested(str)
        Emitted with the alarm id when "Ack" is clicked.
    reset_requested(str)
        Emitted with the alarm id when "Reset" is clicked.
    clear_requested()
        Emitted when "Clear All Alarms" is clicked.
    """

    acknowledge_requested = Signal(str)
    reset_requested = Signal(str)
    clear_requested = Signal()

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.setObjectName(CARD)
        self._rows: List[AlarmRow] = []

        title = QLabel("Alarm Log")
        title.setStyleSheet("font-size: 14px; font-weight: 700;")

        self.counts = QLabel("Active: 0 | Total: 0")

        self.filter_combo = QComboBox()
        self.filter_combo.addItems(["All", "Active"])
        self.filter_combo.setFixedWidth(120)

        self.clear_btn = QPushButton("Clear All Alarms")
        self.clear_btn.setObjectName(DANGER)
        self.clear_btn.clicked.connect(self.clear_requested.emit)

        header = QHBoxLayout()
        header.addWidget(title)
        header.addSpacing(12)
        header.addWidget(self.counts)
        header.addStretch(1)
        header.addWidget(QLabel("View:"))
        header.addWidget(self.filter_combo)
        header.addWidget(self.clear_btn)

        self.table = QTableWidget(0, 7)
        self.table.setHorizontalHeaderLabels(["Time", "Type", "Value", "Limit", "Status", "Message", "Actions"])
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.table.setSelectionBehavior(QAbstractItemView.SelectRows)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)
        layout.addLayout(header)
        layout.addWidget(self.table)

    def mode(self) -> str:
        return self.filter_combo.currentText()

    def set_counts(self, active: int, total: int) -> None:
        self.counts.setText(f"Active: {active} | Total: {total}")
        self.clear_btn.setEnabled(total > 0)

    def set_rows(self, rows: List[AlarmRow]) -> None:
        if rows == self._rows:
            return
        self._rows = list(rows)

        self.table.setRowCount(len(rows))
        for i, (alarm_id, t, typ, value, limit, status, msg) in enumerate(rows):
            self._item(i, 0, t)
            self._item(i, 1, typ)
            self._item(i, 2, value)
            self._item(i, 3, limit)
            self._item(i, 4, status, color=self._status_color(status))
            self._item(i, 5, msg)
            self.table.setCellWidget(i, 6, self._actions(alarm_id, status))
        self.table.resizeColumnsToContents()

    def _actions(self, alarm_id: str, status: str) -> QWidget:
        box = QWidget()
        lay = QHBoxLayout(box)
        lay.setContentsMargins(2, 2, 2, 2)
        lay.setSpacing(4)

        if status == "Active":
            ack = QPushButton("Ack")
            ack.clicked.connect(lambda _=False, i=alarm_id: self.acknowledge_requested.emit(i))
            lay.addWidget(ack)
        if status.startswith("Active"):
            reset = QPushButton("Reset")
            reset.clicked.connect(lambda _=False, i=alarm_id: self.reset_requested.emit(i))
            lay.addWidget(reset)
        lay.addStretch(1)
        return box

    @staticmethod
    def _status_color(status: str) -> str:
        if status == "Active":
            return COLOR_CRIT
        if status == "Active (Ack)":
            return COLOR_WARN
        return COLOR_OK

    def _item(self, r: int, c: int, text: str, color: str | None = None) -> None:
        it = QTableWidgetItem(text)
        it.setFlags(it.flags() & ~Qt.ItemIsEditable)
        if c in (0, 1, 2, 3, 4):
            it.setTextAlignment(Qt.AlignCenter)
        if color is not None:
            it.setForeground(QBrush(QColor(color)))
        self.table.setItem(r, c, it)
