"""Configuration management for Daybook."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DAYBOOK_HOME = Path(os.environ.get("DAYBOOK_HOME", Path.home() / "daybook"))
CONFIG_FILE = DAYBOOK_HOME / "config" / "daybook.conf"
SESSION_FILE = DAYBOOK_HOME / "config" / ".session.json"
DATA_DIR = DAYBOOK_HOME / "data"

DEFAULT_GEMINI_MODEL = "gemini-3-flash-preview"


@dataclass
class Config:
    """Daybook configuration."""

    supabase_url: str = ""
    supabase_anon_key: str = ""
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_GEMINI_MODEL
    store_backend: str = "supabase"
    entries_file: str = ""
    local_user_id: str = ""
    request_timeout: float = 15.0
    operation_timeout: float = 30.0

    def entries_path(self) -> Path:
        """Resolve the JSON file used by the file store."""
        if self.entries_file:
            return Path(self.entries_file).expanduser()
        return DATA_DIR / "entries.json"


@dataclass
class StoredSession:
    """Persisted auth session so a restart can resume without signing in."""

    access_token: str = ""
    refresh_token: str = ""
    expires_at: int = 0
    user: dict = field(default_factory=dict)
    path: Path = SESSION_FILE

    def save(self) -> None:
        """Save session to file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(
                {
                    "access_token": self.access_token,
                    "refresh_token": self.refresh_token,
                    "expires_at": self.expires_at,
                    "user": self.user,
                }
            )
        )
        self.path.chmod(0o600)

    def clear(self) -> None:
        """Forget the persisted session."""
        self.access_token = ""
        self.refresh_token = ""
        self.expires_at = 0
        self.user = {}
        self.path.unlink(missing_ok=True)

    @classmethod
    def load(cls, path: Path | None = None) -> "StoredSession":
        """Load session from file."""
        path = path or SESSION_FILE
        if not path.exists():
            return cls(path=path)
        try:
            data = json.loads(path.read_text())
            return cls(
                access_token=data.get("access_token", ""),
                refresh_token=data.get("refresh_token", ""),
                expires_at=data.get("expires_at", 0),
                user=data.get("user") or {},
                path=path,
            )
        except (json.JSONDecodeError, KeyError, AttributeError):
            logger.warning(f"Ignoring unreadable session file {path}")
            return cls(path=path)


def _parse_float(key: str, value: str, default: float) -> float:
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid {key.upper()} value: {value!r}, using {default}")
        return default


def _unquote(value: str) -> str:
    """Strip 'single' or "double" quotes, or an inline comment when unquoted."""
    if value[:1] in ('"', "'"):
        end_quote = value.find(value[0], 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    return value.split("#")[0].strip()


def load_config(config_file: Path | None = None) -> Config:
    """Load configuration from daybook.conf, then apply environment overrides."""
    config = Config()
    config_file = config_file or CONFIG_FILE

    lines = config_file.read_text().splitlines() if config_file.exists() else []

    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = value.strip()

        value = _unquote(value)

        match key:
            case "supabase_url":
                config.supabase_url = value.rstrip("/")
            case "supabase_anon_key":
                config.supabase_anon_key = value
            case "gemini_api_key":
                config.gemini_api_key = value
            case "gemini_model":
                config.gemini_model = value or DEFAULT_GEMINI_MODEL
            case "store_backend":
                config.store_backend = value.lower()
            case "entries_file":
                config.entries_file = value
            case "local_user_id":
                config.local_user_id = value
            case "request_timeout":
                config.request_timeout = _parse_float(key, value, config.request_timeout)
            case "operation_timeout":
                config.operation_timeout = _parse_float(key, value, config.operation_timeout)
            case _:
                logger.debug(f"Unknown config key: {key}")

    # Environment wins over the file for the generation credential
    env_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
    if env_key:
        config.gemini_api_key = env_key

    return config
