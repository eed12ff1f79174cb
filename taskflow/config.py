import dataclasses
from pathlib import Path

import yaml
from fncli import cli

from .core.errors import ValidationError
from .core.types import SORT_KEYS, VIEWS
from .lib.errors import echo

TASKFLOW_DIR = Path.home() / ".taskflow"
DB_PATH = TASKFLOW_DIR / "taskflow.db"
CONFIG_PATH = TASKFLOW_DIR / "config.yaml"
LOG_PATH = TASKFLOW_DIR / "taskflow.log"

THEMES = ("dark", "light", "system")
DENSITIES = ("comfortable", "compact")


class Config:
    """Single-instance config manager. Load once, cache in memory."""

    _instance: "Config | None" = None
    _data: dict[str, object]

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = {}
            cls._instance._load()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the cached instance so the next access re-reads disk."""
        cls._instance = None

    def _load(self) -> None:
        """Load config from disk."""
        if not CONFIG_PATH.exists():
            self._data = {}
            return
        try:
            with CONFIG_PATH.open() as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            from .lib.log import log

            log(f"[config] unreadable {CONFIG_PATH.name}, using defaults: {e}")
            data = None
        self._data = data if isinstance(data, dict) else {}

    def _save(self) -> None:
        """Persist config to disk."""
        TASKFLOW_DIR.mkdir(parents=True, exist_ok=True)
        with CONFIG_PATH.open("w") as f:
            yaml.dump(self._data, f, default_flow_style=False, allow_unicode=True)

    def get(self, key: str, default: object = None) -> object:
        """Get config value."""
        return self._data.get(key, default)

    def set(self, key: str, value: object) -> None:
        """Set config value and persist."""
        self._data[key] = value
        self._save()


@dataclasses.dataclass(frozen=True)
class Settings:
    theme: str = "dark"
    accent: str = "indigo"
    density: str = "comfortable"
    default_sort: str = "custom"
    default_view: str = "today"
    notifications: bool = False
    reminder_minutes: int = 15


DEFAULT_SETTINGS = Settings()

_CHOICES: dict[str, tuple[str, ...]] = {
    "theme": THEMES,
    "density": DENSITIES,
    "default_sort": SORT_KEYS,
    "default_view": VIEWS,
}

# export documents use the original camelCase keys
CAMEL_KEYS: dict[str, str] = {
    "theme": "theme",
    "accent": "accent",
    "density": "density",
    "default_sort": "defaultSort",
    "default_view": "defaultView",
    "notifications": "notifications",
    "reminder_minutes": "reminderMinutes",
}


def _coerce(key: str, value: object) -> object:
    """Validate one stored value. Raises ValueError if it cannot be used."""
    if key == "notifications":
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ("true", "false", "yes", "no", "on", "off"):
            return value.lower() in ("true", "yes", "on")
        raise ValueError(f"{key} must be true or false")
    if key == "reminder_minutes":
        if isinstance(value, bool):
            raise ValueError(f"{key} must be a whole number of minutes")
        minutes = int(value)  # type: ignore[arg-type]
        if minutes < 0:
            raise ValueError(f"{key} cannot be negative")
        return minutes
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} must be a non-empty string")
    value = value.strip()
    choices = _CHOICES.get(key)
    if choices and value not in choices:
        raise ValueError(f"{key} must be one of: {', '.join(choices)}")
    return value


def settings_from_dict(raw: object) -> Settings:
    """Build Settings from a possibly partial mapping; each field defaults on its own."""
    if not isinstance(raw, dict):
        return DEFAULT_SETTINGS
    values: dict[str, object] = {}
    for field in dataclasses.fields(Settings):
        if field.name not in raw:
            continue
        try:
            values[field.name] = _coerce(field.name, raw[field.name])
        except (TypeError, ValueError):
            continue
    return dataclasses.replace(DEFAULT_SETTINGS, **values)


def settings_to_dict(settings: Settings, camel: bool = False) -> dict[str, object]:
    data = dataclasses.asdict(settings)
    if camel:
        return {CAMEL_KEYS[k]: v for k, v in data.items()}
    return data


def get_settings() -> Settings:
    raw = Config().get("settings")
    return settings_from_dict(raw)


def save_settings(settings: Settings) -> None:
    Config().set("settings", settings_to_dict(settings))


def set_setting(key: str, value: str) -> Settings:
    """Validate and persist a single setting."""
    key = key.replace("-", "_")
    names = {f.name for f in dataclasses.fields(Settings)}
    if key not in names:
        raise ValidationError(f"unknown setting '{key}' (one of: {', '.join(sorted(names))})")
    try:
        coerced = _coerce(key, value)
    except (TypeError, ValueError) as e:
        raise ValidationError(str(e)) from e
    settings = dataclasses.replace(get_settings(), **{key: coerced})
    save_settings(settings)
    return settings


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("taskflow config", name="ls", default=True)
def config_ls() -> None:
    """Show settings"""
    for key, value in settings_to_dict(get_settings()).items():
        if isinstance(value, bool):
            value = str(value).lower()
        echo(f"  {key:<17}{value}")


@cli("taskflow config", name="set")
def config_set(key: str, value: str) -> None:
    """Change a setting"""
    settings = set_setting(key, value)
    name = key.replace("-", "_")
    echo(f"{name} = {settings_to_dict(settings)[name]}")
