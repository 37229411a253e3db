# daylog/config/settings.py

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Expose BASE_DIR for other modules
BASE_DIR = Path(__file__).resolve().parents[2]
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH)

ALLOWED_STORAGE = {"memory", "sqlite"}
ALLOWED_REPLY_POLICIES = {"overlap", "latest"}
ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


@dataclass
class Settings:
    # Reference zone used to cut timestamps into calendar days
    timezone: str = "UTC"

    # Backing store: "memory" (default) or "sqlite"
    storage: str = "memory"
    db_path: str = str(BASE_DIR / "daylog" / "data" / "daylog.db")

    # Simulated "thinking" latency before a composed reply lands
    reply_delay_min: float = 0.75
    reply_delay_max: float = 1.5

    # "overlap" keeps every pending reply, "latest" cancels older ones per day
    reply_policy: str = "overlap"

    # Seed for template selection; None means nondeterministic
    random_seed: Optional[int] = None

    log_level: str = "INFO"


def _parse_float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
        # safeguard: enforce positive
        return value if value > 0 else default
    except ValueError:
        return default


def _parse_optional_int_env(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _parse_choice_env(name: str, default: str, allowed: set) -> str:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    return raw if raw in allowed else default


def load_settings() -> Settings:
    """
    Load configuration from environment variables (and defaults).

    Every value has a usable default, so this never raises; malformed
    values are replaced by their defaults. Ensures the DB directory exists
    when the SQLite backend is selected.
    """
    timezone = os.getenv("DAYLOG_TIMEZONE", "UTC").strip() or "UTC"

    storage = _parse_choice_env("DAYLOG_STORAGE", "memory", ALLOWED_STORAGE)

    # --- DB path (optional override) ---
    default_db_path = BASE_DIR / "daylog" / "data" / "daylog.db"
    db_path_env = os.getenv("DAYLOG_DB_PATH", str(default_db_path)).strip() or str(default_db_path)
    db_path = Path(db_path_env)
    if storage == "sqlite":
        db_path.parent.mkdir(parents=True, exist_ok=True)

    # --- Reply latency ---
    delay_min = _parse_float_env("DAYLOG_REPLY_DELAY_MIN", 0.75)
    delay_max = _parse_float_env("DAYLOG_REPLY_DELAY_MAX", 1.5)
    if delay_max < delay_min:
        # safeguard: keep the range well-formed
        delay_min, delay_max = delay_max, delay_min

    reply_policy = _parse_choice_env("DAYLOG_REPLY_POLICY", "overlap", ALLOWED_REPLY_POLICIES)

    log_level = os.getenv("DAYLOG_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if log_level not in ALLOWED_LOG_LEVELS:
        log_level = "INFO"

    return Settings(
        timezone=timezone,
        storage=storage,
        db_path=str(db_path),
        reply_delay_min=delay_min,
        reply_delay_max=delay_max,
        reply_policy=reply_policy,
        random_seed=_parse_optional_int_env("DAYLOG_RANDOM_SEED"),
        log_level=log_level,
    )
