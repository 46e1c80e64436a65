from __future__ import annotations

import json
from pathlib import Path

from cleans_config import CleansConfig
from cleans_config import ConfigManager


def test_load_without_file_returns_defaults(tmp_path: Path) -> None:
    config = ConfigManager(tmp_path / "cfg").load()

    assert config == CleansConfig()
    assert config.max_jobs == 64


def test_save_creates_directory_and_reloads(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path / "cfg")
    manager.save(CleansConfig(keep_days=14, keep_size_mb=200, max_jobs=8))

    config = manager.load()

    assert manager.config_file.exists()
    assert (config.keep_days, config.keep_size_mb, config.max_jobs) == (14, 200, 8)


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path)
    manager.config_file.write_text("{not json")

    assert manager.load() == CleansConfig()


def test_record_run_accumulates_stats(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path)
    config = manager.load()

    manager.record_run(config, 100)
    manager.record_run(config, 50)
    reloaded = manager.load()

    assert reloaded.stats == {"total_runs": 2, "total_reclaimed_bytes": 150}
    assert reloaded.last_run is not None


def test_out_of_range_values_fall_back_to_defaults(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path)
    manager.config_file.write_text(
        json.dumps({"keep_days": -3, "keep_size_mb": -1, "max_jobs": 0, "stats": [1, 2]})
    )

    config = manager.load()

    assert (config.keep_days, config.keep_size_mb, config.max_jobs) == (0, 0, 64)
    assert config.stats == {"total_runs": 0, "total_reclaimed_bytes": 0}


def test_valid_values_survive_next_to_invalid_ones(tmp_path: Path) -> None:
    config = CleansConfig.from_dict({"keep_days": 7, "keep_size_mb": "lots", "max_jobs": 4})

    assert (config.keep_days, config.keep_size_mb, config.max_jobs) == (7, 0, 4)


def test_non_object_file_falls_back_to_defaults(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path)
    manager.config_file.write_text("[1, 2, 3]")

    assert manager.load() == CleansConfig()


def test_record_run_after_invalid_stats(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path)
    manager.config_file.write_text(json.dumps({"stats": "broken"}))
    config = manager.load()

    manager.record_run(config, 100)

    assert manager.load().stats["total_runs"] == 1
