from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from meter_dashboard.core.state.settings_store import merge_settings
from meter_dashboard.domain.models import AlarmSettings


@dataclass(frozen=True)
class MeterSourceConfig:
    """Real-time meter endpoint settings used by the poll loop."""
    url: str
    meter_id: int
    parameters: List[int] = field(default_factory=lambda: [7])
    timeout_s: float = 10.0
    verify_tls: bool = True


@dataclass(frozen=True)
class StorageConfig:
    """Location of the persisted state file (None = keep state in memory)."""
    state_path: Optional[str] = None


@dataclass(frozen=True)
class UiConfig:
    """Dashboard refresh and display parameters."""
    refresh_ms: int = 250
    plot_window_seconds: int = 900
    debug_log_size: int = 20


@dataclass(frozen=True)
class AppConfig:
    """
    Root application configuration loaded from YAML.

    This is the single source of truth for startup values so the EXE can be
    configured without rebuilding. Alarm settings found here are only the
    defaults: settings persisted from a previous session take precedence.
    """
    meter: MeterSourceConfig
    alarm_defaults: AlarmSettings
    storage: StorageConfig
    ui: UiConfig
    log_level: str = "INFO"


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("config.yaml must contain a YAML mapping at the root")
    return data


def _resolve_default_config_path() -> Path:
    """
    Resolve config.yaml location.

    Priority:
    1) APP_CONFIG env var if provided
    2) config.yaml next to the executable
    3) ./config.yaml in current working directory
    """
    import os
    import sys

    env = os.getenv("APP_CONFIG")
    if env:
        return Path(env).expanduser().resolve()

    # PyInstaller-friendly: executable directory
    exe_dir = Path(sys.executable).resolve().parent
    candidate = exe_dir / "config.yaml"
    if candidate.exists():
        return candidate

    # source/dev fallback
    return Path("config.yaml").resolve()


def parse_app_config(raw: Dict[str, Any]) -> AppConfig:
    """
    Convert a raw YAML mapping into typed config objects.

    Raises
    ------
    ValueError
        If required fields are missing or invalid.
    """
    # ---- meter ----
    m = raw.get("meter") or {}
    try:
        meter = MeterSourceConfig(
            url=str(m["url"]),
            meter_id=int(m["meter_id"]),
            parameters=[int(p) for p in m.get("parameters", [7])],
            timeout_s=float(m.get("timeout_s", 10.0)),
            verify_tls=bool(m.get("verify_tls", True)),
        )
    except KeyError as e:
        raise ValueError(f"meter.{e.args[0]} is required") from None

    # ---- alarm defaults ----
    alarm_defaults = merge_settings(AlarmSettings(), raw.get("alarm_defaults") or {})

    # ---- storage ----
    s = raw.get("storage") or {}
    state_path = s.get("state_path")
    storage = StorageConfig(state_path=str(state_path) if state_path else None)

    # ---- ui ----
    u = raw.get("ui") or {}
    ui = UiConfig(
        refresh_ms=int(u.get("refresh_ms", 250)),
        plot_window_seconds=int(u.get("plot_window_seconds", 900)),
        debug_log_size=int(u.get("debug_log_size", 20)),
    )

    # ---- logging ----
    lg = raw.get("logging") or {}
    log_level = str(lg.get("level", "INFO"))

    return AppConfig(
        meter=meter,
        alarm_defaults=alarm_defaults,
        storage=storage,
        ui=ui,
        log_level=log_level,
    )


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """
    Load application configuration from YAML and convert into typed config objects.

    Parameters
    ----------
    path
        Explicit path to config.yaml. If None, uses default resolution.

    Returns
    -------
    AppConfig
        Parsed and validated configuration.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If required fields are missing or invalid.
    """
    cfg_path = Path(path).expanduser().resolve() if path else _resolve_default_config_path()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config not found: {cfg_path}")

    return parse_app_config(_read_yaml(cfg_path))
