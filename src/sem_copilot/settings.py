import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .orchestrator import DEFAULT_BASE_URL, DEFAULT_MODEL

DEFAULT_DATA_DIR = ".sem_copilot_data"
DEFAULT_TIMEOUT_SECONDS = 60


@dataclass(frozen=True)
class AppSettings:
    api_key: str
    model: str
    base_url: str
    timeout_seconds: int
    data_dir: Path
    log_level: str

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppSettings":
        env = os.environ if environ is None else environ
        return cls(
            api_key=str(env.get("OPENAI_API_KEY", "")).strip(),
            model=str(env.get("OPENAI_MODEL", "")).strip() or DEFAULT_MODEL,
            base_url=str(env.get("OPENAI_BASE_URL", "")).strip() or DEFAULT_BASE_URL,
            timeout_seconds=_parse_int(env.get("SEM_COPILOT_TIMEOUT"), DEFAULT_TIMEOUT_SECONDS),
            data_dir=Path(str(env.get("SEM_COPILOT_DATA_DIR", "")).strip() or DEFAULT_DATA_DIR),
            log_level=str(env.get("SEM_COPILOT_LOG_LEVEL", "")).strip().upper() or "INFO",
        )


def _parse_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default
