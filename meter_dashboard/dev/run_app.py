from __future__ import annotations

import sys
from PySide6.QtWidgets import QApplication

from meter_dashboard.bootstrap import build_app_system
from meter_dashboard.notification.qt_announcer import QtAnnouncer
from meter_dashboard.ui.main_dashboard import MainWindow
from meter_dashboard.ui.theme import APP_QSS


def main() -> None:
    """
    Start the desktop UI, the poll thread and voice notifications.

    Notes
    -----
    - Loads configuration from `config.yaml` by default.
    - Optional CLI usage:
        python -m meter_dashboard.dev.run_app --config path/to/config.yaml
    """
    app = QApplication(sys.argv)
    app.setStyleSheet(APP_QSS)

    config_path = None
    if "--config" in sys.argv:
        i = sys.argv.index("--config")
        if i + 1 < len(sys.argv):
            config_path = sys.argv[i + 1]

    # announcer must live on the GUI thread
    announcer = QtAnnouncer()
    wiring = build_app_system(config_path=config_path, announcer=announcer)

    win = MainWindow(wiring)
    win.show()

    wiring.runtime.start()
    app.aboutToQuit.connect(wiring.runtime.stop)
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
