from __future__ import annotations

from typing import Optional

from PySide6.QtWidgets import QFormLayout, QFrame, QLabel, QVBoxLayout

from meter_dashboard.domain.models import AlarmSettings, MeterReading
from meter_dashboard.ui.adapters.store_snapshots import demand_band
from meter_dashboard.ui.theme import CARD, COLOR_CRIT, COLOR_OK, COLOR_TEXT_MUTED, COLOR_WARN


class MeterCard(QFrame):
    """
    Latest meter reading: metadata, demand value, and the last fetch error.
    """

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.setObjectName(CARD)

        title = QLabel("Meter Data")
        title.setStyleSheet("font-size: 14px; font-weight: 700;")

        self.demand = QLabel("--")
        self.demand.setStyleSheet("font-size: 28px; font-weight: 800;")
        self.limits = QLabel("")
        self.limits.setStyleSheet(f"color: {COLOR_TEXT_MUTED};")

        self.name = QLabel("--")
        self.status = QLabel("--")
        self.location = QLabel("--")
        self.hierarchy = QLabel("--")
        self.date_time = QLabel("--")
        self.updated = QLabel("--")

        form = QFormLayout()
        form.addRow("Meter", self.name)
        form.addRow("Status", self.status)
        form.addRow("Location", self.location)
        form.addRow("Hierarchy", self.hierarchy)
        form.addRow("Meter time", self.date_time)
        form.addRow("Last updated", self.updated)

        self.error = QLabel("")
        self.error.setStyleSheet(f"color: {COLOR_CRIT}; font-weight: 600;")
        self.error.setWordWrap(True)
        self.error.setVisible(False)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)
        layout.addWidget(title)
        layout.addWidget(self.error)
        layout.addWidget(self.demand)
        layout.addWidget(self.limits)
        layout.addLayout(form)
        layout.addStretch(1)

    def set_reading(self, reading: Optional[MeterReading], settings: AlarmSettings, error: Optional[str]) -> None:
        self.error.setText(error or "")
        self.error.setVisible(bool(error))
        self.limits.setText(f"High: {settings.high_set_demand:g}kVA | Low: {settings.low_set_demand:g}kVA")

        if reading is None:
            self.demand.setText("No data available")
            return

        band = demand_band(reading, settings)
        color = {"high": COLOR_CRIT, "low": COLOR_WARN, "normal": COLOR_OK}.get(band, COLOR_TEXT_MUTED)
        self.demand.setText(f"{reading.demand_raw} {reading.unit}")
        self.demand.setStyleSheet(f"font-size: 28px; font-weight: 800; color: {color};")

        self.name.setText(reading.meter_name or "--")
        self.status.setText(reading.status or "--")
        self.location.setText(reading.location or "--")
        self.hierarchy.setText(reading.hierarchy or "--")
        self.date_time.setText(reading.date_time or "--")
        self.updated.setText(reading.received_at.strftime("%H:%M:%S"))
