from __future__ import annotations

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QCheckBox,
    QDoubleSpinBox,
    QFormLayout,
    QFrame,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
)

from meter_dashboard.domain.models import (
    MAX_REFRESH_INTERVAL_S,
    MAX_REPEAT_INTERVAL_S,
    MIN_REFRESH_INTERVAL_S,
    MIN_REPEAT_INTERVAL_S,
    AlarmSettings,
)
from meter_dashboard.ui.adapters.store_snapshots import settings_summary
from meter_dashboard.ui.theme import CARD, COLOR_TEXT_MUTED


class SettingsPanel(QFrame):
    """
    Alarm settings form plus export / import / defaults actions.

    Every edit is emitted immediately as a one-key partial update through
    ``settings_changed``; :meth:`set_settings` refreshes the form without
    re-emitting.
    """

    settings_changed = Signal(dict)
    export_requested = Signal()
    import_requested = Signal()
    defaults_requested = Signal()

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.setObjectName(CARD)

        title = QLabel("Alarm Settings")
        title.setStyleSheet("font-size: 14px; font-weight: 700;")

        self.high = QDoubleSpinBox()
        self.high.setRange(0.0, 1_000_000.0)
        self.high.setSingleStep(10.0)
        self.high.setSuffix(" kVA")

        self.low = QDoubleSpinBox()
        self.low.setRange(0.0, 1_000_000.0)
        self.low.setSingleStep(10.0)
        self.low.setSuffix(" kVA")

        self.refresh = QSpinBox()
        self.refresh.setRange(MIN_REFRESH_INTERVAL_S, MAX_REFRESH_INTERVAL_S)
        self.refresh.setSingleStep(5)
        self.refresh.setSuffix(" s")

        self.repeat = QSpinBox()
        self.repeat.setRange(MIN_REPEAT_INTERVAL_S, MAX_REPEAT_INTERVAL_S)
        self.repeat.setSingleStep(10)
        self.repeat.setSuffix(" s")

        self.auto_reset = QCheckBox("Auto Reset on Normal")
        self.voice = QCheckBox("Voice Announcements")

        form = QFormLayout()
        form.addRow("High Set Demand", self.high)
        form.addRow("Low Set Demand", self.low)
        form.addRow("Auto Refresh", self.refresh)
        form.addRow("Alarm Repeat", self.repeat)
        form.addRow(self.auto_reset)
        form.addRow(self.voice)

        self.summary = QLabel("")
        self.summary.setStyleSheet(f"color: {COLOR_TEXT_MUTED};")

        export_btn = QPushButton("Export Settings")
        import_btn = QPushButton("Import Settings")
        defaults_btn = QPushButton("Reset to Defaults")
        export_btn.clicked.connect(self.export_requested.emit)
        import_btn.clicked.connect(self.import_requested.emit)
        defaults_btn.clicked.connect(self.defaults_requested.emit)

        actions = QHBoxLayout()
        actions.addWidget(export_btn)
        actions.addWidget(import_btn)
        actions.addWidget(defaults_btn)
        actions.addStretch(1)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)
        layout.addWidget(title)
        layout.addLayout(form)
        layout.addWidget(self.summary)
        layout.addLayout(actions)

        self.high.valueChanged.connect(lambda v: self._emit("high_set_demand", v))
        self.low.valueChanged.connect(lambda v: self._emit("low_set_demand", v))
        self.refresh.valueChanged.connect(lambda v: self._emit("auto_refresh_interval", v))
        self.repeat.valueChanged.connect(lambda v: self._emit("alarm_repeat_interval", v))
        self.auto_reset.toggled.connect(lambda v: self._emit("auto_reset_enabled", v))
        self.voice.toggled.connect(lambda v: self._emit("voice_enabled", v))

    def set_settings(self, s: AlarmSettings) -> None:
        widgets = (self.high, self.low, self.refresh, self.repeat, self.auto_reset, self.voice)
        for w in widgets:
            w.blockSignals(True)
        try:
            if not self.high.hasFocus():
                self.high.setValue(s.high_set_demand)
            if not self.low.hasFocus():
                self.low.setValue(s.low_set_demand)
            if not self.refresh.hasFocus():
                self.refresh.setValue(s.auto_refresh_interval)
            if not self.repeat.hasFocus():
                self.repeat.setValue(s.alarm_repeat_interval)
            self.auto_reset.setChecked(s.auto_reset_enabled)
            self.voice.setChecked(s.voice_enabled)
        finally:
            for w in widgets:
                w.blockSignals(False)
        self.summary.setText(settings_summary(s))

    def _emit(self, key: str, value) -> None:
        self.settings_changed.emit({key: value})
