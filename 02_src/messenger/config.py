"""Project-level configuration and path helpers."""

import os
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "messenger.db"
DEFAULT_LOG_PATH = LOGS_DIR / "messenger.log"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)

# Message limits
MAX_TEXT_LENGTH = 4096
MAX_EMOJI_LENGTH = 10
MAX_CONTACT_NAME_LENGTH = 50

DEFAULT_DELIVERY_DELAY_SECONDS = 0.1


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def delivery_delay_seconds(env_value: str | None = None) -> float:
    """Delay before an online recipient's message is upgraded to delivered."""
    raw = env_value if env_value is not None else os.getenv("DELIVERY_DELAY_SECONDS")
    if not raw:
        return DEFAULT_DELIVERY_DELAY_SECONDS
    try:
        return max(0.0, float(raw))
    except ValueError:
        return DEFAULT_DELIVERY_DELAY_SECONDS


def cors_origins(env_value: str | None = None) -> list[str]:
    """Allowed browser origins, comma separated in CORS_ORIGINS."""
    raw = env_value if env_value is not None else os.getenv("CORS_ORIGINS")
    if not raw:
        return ["http://localhost:5173", "http://localhost:5174"]  # Vite dev server
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
