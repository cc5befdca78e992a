"""Settings for the CLI and web app, from an optional YAML file plus environment."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .calculations import SERVICE_INTERVAL_KM


@dataclass
class Config:
    data_dir: Path = Path("vehicles")
    log_level: str = "WARNING"
    reminder_hour: int = 9
    reminder_days_before: int = 1
    default_interval_km: int = SERVICE_INTERVAL_KM
    secret_key: str = "dev-secret-key-change-in-prod"


# YAML key -> Config attribute
_YAML_KEYS = {
    "dataDir": "data_dir",
    "logLevel": "log_level",
    "reminderHour": "reminder_hour",
    "reminderDaysBefore": "reminder_days_before",
    "defaultIntervalKm": "default_interval_km",
    "secretKey": "secret_key",
}

_ENV_KEYS = {
    "MAINT_DATA_DIR": "data_dir",
    "MAINT_LOG_LEVEL": "log_level",
    "SECRET_KEY": "secret_key",
}


def _coerce(attr: str, value: Any) -> Any:
    if attr == "data_dir":
        return Path(value)
    if attr in ("reminder_hour", "reminder_days_before", "default_interval_km"):
        return int(value)
    return str(value)


def load_config(
    path: Optional[Union[str, Path]] = None, environ: Optional[Dict[str, str]] = None
) -> Config:
    """
    Build a Config. File values override defaults, environment overrides both.

    The file path comes from ``path`` or the MAINT_CONFIG variable; a
    missing file is not an error.
    """
    environ = os.environ if environ is None else environ
    config = Config()

    path = path or environ.get("MAINT_CONFIG")
    if path and Path(path).exists():
        with open(path, "r") as fp:
            data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
        for key, attr in _YAML_KEYS.items():
            if data.get(key) is not None:
                setattr(config, attr, _coerce(attr, data[key]))

    for key, attr in _ENV_KEYS.items():
        if environ.get(key):
            setattr(config, attr, _coerce(attr, environ[key]))

    return config
