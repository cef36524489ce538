"""credscore.config — Runtime settings from environment variables."""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    log_level: str = "WARNING"
    state_file: str = "credscore-state.json"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            log_level=os.environ.get("CREDSCORE_LOG_LEVEL", "WARNING"),
            state_file=os.environ.get("CREDSCORE_STATE_FILE", "credscore-state.json"),
        )
