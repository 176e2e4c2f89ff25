from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from meter_dashboard.core.config.yaml_config import AppConfig, load_app_config
from meter_dashboard.core.state.kv_store import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore
from meter_dashboard.core.state.settings_store import SettingsStore
from meter_dashboard.core.state_store import StateStore
from meter_dashboard.notification.base import Announcer, SilentAnnouncer
from meter_dashboard.notification.repeat_scheduler import NotificationScheduler
from meter_dashboard.notification.voice_notifier import VoiceNotifier
from meter_dashboard.runtime.app_runtime import AppRuntime
from meter_dashboard.runtime.debug_log import DebugLogHandler, configure_logging
from meter_dashboard.runtime.timers import TimerFactory, thread_timer_factory
from meter_dashboard.services.controller import MonitoringController
from meter_dashboard.transport.meter_client import MeterClient, MeterClientConfig


@dataclass(frozen=True)
class AppWiring:
    """Everything the UI layer needs to run the system."""
    config: AppConfig
    store: StateStore
    voice: VoiceNotifier
    controller: MonitoringController
    runtime: AppRuntime
    debug_log: DebugLogHandler


def build_kv_store(cfg: AppConfig) -> KeyValueStore:
    if cfg.storage.state_path:
        return JsonFileKeyValueStore(cfg.storage.state_path)
    return InMemoryKeyValueStore()


def build_meter_client(cfg: AppConfig) -> MeterClient:
    return MeterClient(
        MeterClientConfig(
            url=cfg.meter.url,
            meter_id=cfg.meter.meter_id,
            parameters=list(cfg.meter.parameters),
            timeout_s=cfg.meter.timeout_s,
            verify_tls=cfg.meter.verify_tls,
        )
    )


def build_app_system(
    config_path: Optional[str] = None,
    announcer: Optional[Announcer] = None,
    timer_factory: TimerFactory = thread_timer_factory,
) -> AppWiring:
    cfg = load_app_config(config_path)
    debug_log = configure_logging(cfg.log_level, cfg.ui.debug_log_size)

    # --- STATE ---
    store = StateStore(
        settings=SettingsStore(defaults=cfg.alarm_defaults),
        kv=build_kv_store(cfg),
    )
    store.restore()

    # --- NOTIFICATIONS ---
    voice = VoiceNotifier(announcer or SilentAnnouncer(), store)
    scheduler = NotificationScheduler(store, voice, timer_factory=timer_factory)

    # --- CONTROLLER ---
    controller = MonitoringController(
        store=store,
        voice=voice,
        scheduler=scheduler,
        source=build_meter_client(cfg),
    )

    # --- RUNTIME ---
    runtime = AppRuntime(controller=controller, store=store)

    return AppWiring(
        config=cfg,
        store=store,
        voice=voice,
        controller=controller,
        runtime=runtime,
        debug_log=debug_log,
    )
