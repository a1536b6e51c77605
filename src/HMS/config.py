"""
Runtime settings.

Environment
-----------
HMS_DATA_DIR    : directory holding the live artifacts (default "./data")
HMS_BACKUP_DIR  : directory holding timestamped snapshots (default "./backups")
HMS_AUTO_BACKUP : if 1/true/yes, every save also writes a snapshot
"""

import os
import pathlib
from dataclasses import dataclass
from typing import Optional


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    data_dir: pathlib.Path
    backup_dir: pathlib.Path
    auto_backup: bool = False

    @classmethod
    def from_env(
        cls,
        data_dir: Optional[str] = None,
        backup_dir: Optional[str] = None,
        auto_backup: Optional[bool] = None,
    ) -> "Settings":
        """Explicit arguments win over environment variables, which win over defaults."""
        return cls(
            data_dir=pathlib.Path(data_dir or os.getenv("HMS_DATA_DIR", "data")),
            backup_dir=pathlib.Path(backup_dir or os.getenv("HMS_BACKUP_DIR", "backups")),
            auto_backup=_env_flag("HMS_AUTO_BACKUP") if auto_backup is None else auto_backup,
        )
