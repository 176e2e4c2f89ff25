from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import (
    QFileDialog,
    QHBoxLayout,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSplitter,
    QVBoxLayout,
    QWidget,
)

from meter_dashboard.bootstrap import AppWiring
from meter_dashboard.core.state.settings_store import SettingsImportError, export_filename
from meter_dashboard.ui.adapters.store_snapshots import alarm_rows, header_status, pending_alarms
from meter_dashboard.ui.theme import DANGER
from meter_dashboard.ui.widgets.alarm_banner import AlarmBanner
from meter_dashboard.ui.widgets.alarm_table import AlarmTable
from meter_dashboard.ui.widgets.debug_log_panel import DebugLogPanel
from meter_dashboard.ui.widgets.demand_plot import DemandPlot
from meter_dashboard.ui.widgets.meter_card import MeterCard
from meter_dashboard.ui.widgets.settings_panel import SettingsPanel
from meter_dashboard.ui.widgets.status_indicator import StatusIndicator

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """
    Main dashboard window.
    - Top: status header, Refresh and Force Stop buttons, alarm banner
    - Middle: meter card + demand plot + settings
    - Bottom: alarm log + debug log

    The window never blocks on the network: Refresh only wakes the poll
    thread, and every panel is redrawn from store snapshots on a QTimer.
    """

    def __init__(self, wiring: AppWiring) -> None:
        super().__init__()
        self.setWindowTitle("Energy Meter Dashboard")
        self.resize(1400, 880)

        self.wiring = wiring
        self.store = wiring.store
        self.controller = wiring.controller
        self.voice = wiring.voice

        root = QWidget()
        self.setCentralWidget(root)
        layout = QVBoxLayout(root)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(12)

        # Top bar
        top = QHBoxLayout()
        self.status = StatusIndicator()
        self.refresh_btn = QPushButton("Refresh")
        self.refresh_btn.clicked.connect(self.on_refresh)
        self.force_stop_btn = QPushButton("Force Stop")
        self.force_stop_btn.setObjectName(DANGER)
        self.force_stop_btn.clicked.connect(self.on_force_stop)
        top.addWidget(self.status, 1)
        top.addWidget(self.refresh_btn)
        top.addWidget(self.force_stop_btn)
        layout.addLayout(top)

        self.banner = AlarmBanner()
        self.banner.acknowledge_requested.connect(self.on_acknowledge)
        layout.addWidget(self.banner)

        # Middle: meter + plot + settings
        middle = QSplitter()
        middle.setChildrenCollapsible(False)

        self.meter_card = MeterCard()
        self.plot = DemandPlot(window_seconds=wiring.config.ui.plot_window_seconds)
        self.settings_panel = SettingsPanel()
        self.settings_panel.settings_changed.connect(self.on_settings_changed)
        self.settings_panel.export_requested.connect(self.on_export)
        self.settings_panel.import_requested.connect(self.on_import)
        self.settings_panel.defaults_requested.connect(self.on_defaults)

        middle.addWidget(self.meter_card)
        middle.addWidget(self.plot)
        middle.addWidget(self.settings_panel)
        middle.setStretchFactor(0, 2)
        middle.setStretchFactor(1, 3)
        middle.setStretchFactor(2, 2)
        layout.addWidget(middle, stretch=3)

        # Bottom: alarm log + debug log
        bottom = QSplitter()
        bottom.setChildrenCollapsible(False)

        self.alarm_table = AlarmTable()
        self.alarm_table.acknowledge_requested.connect(self.on_acknowledge)
        self.alarm_table.reset_requested.connect(self.on_manual_reset)
        self.alarm_table.clear_requested.connect(self.on_clear_all)
        self.debug_panel = DebugLogPanel()

        bottom.addWidget(self.alarm_table)
        bottom.addWidget(self.debug_panel)
        bottom.setStretchFactor(0, 3)
        bottom.setStretchFactor(1, 1)
        layout.addWidget(bottom, stretch=3)

        self.settings_panel.set_settings(self.store.get_settings())

        # UI refresh timer
        self.timer = QTimer(self)
        self.timer.setInterval(wiring.config.ui.refresh_ms)
        self.timer.timeout.connect(self.refresh_ui)
        self.timer.start()

    # --- Actions ---
    def on_refresh(self) -> None:
        self.wiring.runtime.request_refresh()

    def on_acknowledge(self, alarm_id: str) -> None:
        self.controller.acknowledge(alarm_id)
        self.refresh_ui()

    def on_manual_reset(self, alarm_id: str) -> None:
        self.controller.manual_reset(alarm_id)
        self.refresh_ui()

    def on_clear_all(self) -> None:
        self.controller.clear_all()
        self.refresh_ui()

    def on_force_stop(self) -> None:
        if self.controller.force_stop_engaged:
            self.controller.release_force_stop()
        else:
            self.controller.engage_force_stop()
        self.refresh_ui()

    def on_settings_changed(self, partial: dict) -> None:
        try:
            self.controller.update_settings(partial)
        except SettingsImportError as e:
            QMessageBox.warning(self, "Invalid setting", str(e))
        self.settings_panel.set_settings(self.store.get_settings())

    def on_export(self) -> None:
        path, _ = QFileDialog.getSaveFileName(self, "Export Settings", export_filename(), "JSON files (*.json)")
        if not path:
            return
        try:
            Path(path).write_text(self.controller.export_settings(), encoding="utf-8")
        except OSError as e:
            logger.error("Settings export failed: %s", e)
            QMessageBox.warning(self, "Export failed", str(e))
            return
        logger.info("Settings exported to %s", path)

    def on_import(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Import Settings", "", "JSON files (*.json)")
        if not path:
            return
        try:
            blob = Path(path).read_bytes()
            self.controller.import_settings(blob)
        except (OSError, SettingsImportError) as e:
            logger.error("Settings import failed: %s", e)
            QMessageBox.warning(self, "Import failed", str(e))
            return
        self.settings_panel.set_settings(self.store.get_settings())
        QMessageBox.information(self, "Import Settings", "Settings imported successfully!")

    def on_defaults(self) -> None:
        answer = QMessageBox.question(self, "Reset to Defaults", "Reset all settings to defaults?")
        if answer != QMessageBox.Yes:
            return
        self.controller.reset_settings()
        self.settings_panel.set_settings(self.store.get_settings())

    # --- Periodic redraw ---
    def refresh_ui(self) -> None:
        settings = self.store.get_settings()
        reading = self.store.get_latest_reading()

        # Meter card + plot
        self.meter_card.set_reading(reading, settings, self.store.last_error)
        if reading is not None:
            self.plot.push(reading.received_at, reading.demand)
        self.plot.set_limits(settings.high_set_demand, settings.low_set_demand)
        self.plot.refresh()

        # Header
        status = header_status(self.store, speaking=self.voice.speaking)
        self.status.set_status(status)

        if status.force_stop:
            self.force_stop_btn.setText("Re-arm Alarms")
            self.force_stop_btn.setEnabled(True)
        else:
            self.force_stop_btn.setText("Force Stop")
            self.force_stop_btn.setEnabled(status.speaking or status.unacknowledged > 0)

        # Banner + tables
        self.banner.set_alarms(pending_alarms(self.store))
        self.alarm_table.set_counts(status.active, status.total)
        self.alarm_table.set_rows(alarm_rows(self.store, active_only=self.alarm_table.mode() == "Active"))
        self.debug_panel.set_entries(self.wiring.debug_log.entries())
