"""YAML config loader."""

from dataclasses import dataclass, field

import yaml

from .models import DEFAULT_USER_AGENT


@dataclass
class HttpConfig:
    timeout: int = 60
    rate_limit: float = 1.0
    user_agent: str = DEFAULT_USER_AGENT
    max_archive_size: int = 104857600


@dataclass
class PortalConfig:
    target_status: str = "審査終了"
    timezone: str = "Asia/Tokyo"
    max_run_seconds: int = 0  # 0 disables the wall-clock budget


@dataclass
class StorageConfig:
    root_dir: str = "data/drive"


@dataclass
class AppConfig:
    roster_path: str = "roster.yaml"
    db_path: str = "egov.db"
    log_dir: str = "logs"
    log_level: str = "INFO"
    http: HttpConfig = field(default_factory=HttpConfig)
    portal: PortalConfig = field(default_factory=PortalConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)


def _section(cls, raw):
    return cls(**{k: v for k, v in (raw or {}).items() if k in cls.__dataclass_fields__})


def load_config(config_path: str = "config.yaml") -> AppConfig:
    with open(config_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return AppConfig(
        roster_path=raw.get("roster_path", "roster.yaml"),
        db_path=raw.get("db_path", "egov.db"),
        log_dir=raw.get("log_dir", "logs"),
        log_level=raw.get("log_level", "INFO"),
        http=_section(HttpConfig, raw.get("http")),
        portal=_section(PortalConfig, raw.get("portal")),
        storage=_section(StorageConfig, raw.get("storage")),
    )
