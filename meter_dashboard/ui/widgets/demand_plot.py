from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import List, Tuple

import pyqtgraph as pg
from PySide6.QtWidgets import QFrame, QLabel, QVBoxLayout

from meter_dashboard.ui.theme import CARD, COLOR_CRIT, COLOR_INFO, COLOR_WARN


class DemandPlot(QFrame):
    """
    Rolling plot of demand readings received in this session, with the
    current high/low set points drawn as horizontal lines.
    """

    def __init__(self, window_seconds: int = 900, parent=None) -> None:
        super().__init__(parent)
        self.setObjectName(CARD)

        self.window_seconds = window_seconds
        self._points: List[Tuple[datetime, float]] = []

        title = QLabel(f"Demand (rolling {window_seconds // 60} min)")
        title.setStyleSheet("font-size: 14px; font-weight: 700;")

        pg.setConfigOptions(antialias=True)
        self.plot = pg.PlotWidget()
        self.plot.setBackground(None)
        self.plot.showGrid(x=True, y=True, alpha=0.2)
        self.plot.setLabel("bottom", "seconds")
        self.plot.setLabel("left", "kVA")

        self.curve = self.plot.plot([], [], pen=pg.mkPen(COLOR_INFO, width=2), symbol="o", symbolSize=5)
        self.high_line = pg.InfiniteLine(angle=0, pen=pg.mkPen(COLOR_CRIT, style=pg.QtCore.Qt.PenStyle.DashLine))
        self.low_line = pg.InfiniteLine(angle=0, pen=pg.mkPen(COLOR_WARN, style=pg.QtCore.Qt.PenStyle.DashLine))
        self.plot.addItem(self.high_line)
        self.plot.addItem(self.low_line)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)
        layout.addWidget(title)
        layout.addWidget(self.plot)

    def push(self, ts: datetime, value: float) -> None:
        if math.isnan(value):
            return
        if self._points and self._points[-1][0] == ts:
            return
        self._points.append((ts, value))

        # trim old points
        cutoff = ts - timedelta(seconds=self.window_seconds)
        self._points = [(t, v) for (t, v) in self._points if t >= cutoff]

    def set_limits(self, high: float, low: float) -> None:
        self.high_line.setValue(high)
        self.low_line.setValue(low)

    def refresh(self) -> None:
        """
        Redraw the curve (call periodically from QTimer).
        """
        if not self._points:
            return
        t0 = self._points[0][0]
        xs = [(t - t0).total_seconds() for (t, _) in self._points]
        ys = [v for (_, v) in self._points]
        self.curve.setData(xs, ys)
