from __future__ import annotations

from string import Template
from typing import Dict, Mapping

# Status colours, shared by widgets that colour text or plot pens directly.
COLOR_OK = "#22c55e"
COLOR_WARN = "#f59e0b"
COLOR_CRIT = "#ef4444"
COLOR_TEXT_MUTED = "#94a3b8"
COLOR_INFO = "#38bdf8"

DARK_PALETTE: Dict[str, str] = {
    "window": "#0b1120",
    "surface": "#131c2e",
    "sunken": "#080d19",
    "outline": "#243049",
    "text": "#e5e9f0",
    "heading": "#c8d1df",
    "muted": COLOR_TEXT_MUTED,
    "accent": "#0e7490",
    "accent_hover": "#0891b2",
    "idle": "#2b3546",
    "danger": "#b91c1c",
    "danger_hover": "#dc2626",
    "alarm_bg": "#3b0a0a",
    "alarm_edge": COLOR_CRIT,
}

# Object names set with QWidget.setObjectName that carry their own rules.
CARD = "Card"
BANNER = "Banner"
DANGER = "Danger"

_RADIUS = 8

_QSS = Template(
    """
QMainWindow { background: $window; font-size: 12px; }
QLabel, QCheckBox { color: $text; }

QFrame#$card { background: $surface; border: 1px solid $outline; border-radius: ${radius}px; }
QFrame#$banner { background: $alarm_bg; border: 2px solid $alarm_edge; border-radius: ${radius}px; }

QTableWidget, QListWidget {
    background: $sunken; color: $text;
    border: 1px solid $outline; gridline-color: $outline;
}
QTableWidget::item { padding: 4px; }
QHeaderView::section { background: $surface; color: $heading; border: none; padding: 5px; font-weight: 600; }

QPushButton { background: $accent; color: white; border: none; padding: 7px 14px; border-radius: ${radius}px; }
QPushButton:hover { background: $accent_hover; }
QPushButton:disabled { background: $idle; color: $muted; }
QPushButton#$danger { background: $danger; font-weight: 700; }
QPushButton#$danger:hover { background: $danger_hover; }

QSpinBox, QDoubleSpinBox, QComboBox {
    background: $sunken; color: $text;
    border: 1px solid $outline; border-radius: 4px; padding: 3px 6px;
}
QSplitter::handle { background: $window; }
"""
)


def build_stylesheet(palette: Mapping[str, str] = DARK_PALETTE) -> str:
    """
    Render the application stylesheet for a colour palette.

    Raises
    ------
    KeyError
        If ``palette`` lacks a colour the stylesheet refers to.
    """
    return _QSS.substitute(
        palette,
        card=CARD,
        banner=BANNER,
        danger=DANGER,
        radius=_RADIUS,
    )


APP_QSS = build_stylesheet()
