#!/usr/bin/env python3
"""
cargo-cleans Configuration Manager

Persists default cleanup thresholds and cumulative run statistics in a
.cargo-cleans directory. Scan results are never stored.
"""

import json
import pathlib
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional

from async_fs import DEFAULT_MAX_JOBS


@dataclass
class CleansConfig:
    """Stored defaults and statistics"""

    version: str = "1.0"
    keep_days: int = 0
    keep_size_mb: int = 0
    max_jobs: int = DEFAULT_MAX_JOBS
    last_run: Optional[str] = None
    stats: dict = field(default_factory=lambda: {"total_runs": 0, "total_reclaimed_bytes": 0})

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "CleansConfig":
        """Create from dictionary, replacing out-of-range values with defaults"""
        default = cls()
        stats = data.get("stats", default.stats)
        if not isinstance(stats, dict):
            stats = default.stats
        return cls(
            version=data.get("version", default.version),
            keep_days=_int_setting(data, "keep_days", default.keep_days, minimum=0),
            keep_size_mb=_int_setting(data, "keep_size_mb", default.keep_size_mb, minimum=0),
            max_jobs=_int_setting(data, "max_jobs", default.max_jobs, minimum=1),
            last_run=data.get("last_run"),
            stats=stats,
        )


def _int_setting(data: dict, key: str, default: int, minimum: int) -> int:
    try:
        value = int(data.get(key, default))
    except (TypeError, ValueError):
        return default
    return value if value >= minimum else default


class ConfigManager:
    """Manages loading and saving configuration"""

    def __init__(self, config_dir: Optional[pathlib.Path] = None):
        """Initialize configuration manager

        Args:
            config_dir: Override default .cargo-cleans directory location
        """
        if config_dir:
            self.config_dir = config_dir
        else:
            self.config_dir = pathlib.Path.home() / ".cargo-cleans"

        self.config_file = self.config_dir / "config.json"

    def load(self) -> CleansConfig:
        """Load configuration from file"""
        if self.config_file.exists():
            try:
                with self.config_file.open() as f:
                    return CleansConfig.from_dict(json.load(f))
            except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError):
                # If config is corrupted, return default
                return CleansConfig()
        return CleansConfig()

    def save(self, config: CleansConfig):
        """Save configuration to file"""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with self.config_file.open("w") as f:
            json.dump(config.to_dict(), f, indent=2)

    def record_run(self, config: CleansConfig, reclaimed: int):
        """Add a completed cleanup to the statistics and save"""
        stats = config.stats
        stats["total_runs"] = stats.get("total_runs", 0) + 1
        stats["total_reclaimed_bytes"] = stats.get("total_reclaimed_bytes", 0) + reclaimed
        config.last_run = datetime.now(timezone.utc).isoformat()
        self.save(config)
