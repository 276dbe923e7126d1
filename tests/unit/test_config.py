"""
Unit tests for pipeline configuration loading
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from palletsync.core.config import (
    PipelineConfig,
    PipelineConfigLoader,
    apply_env_overrides,
    load_config,
)


class TestPipelineConfigLoader:
    """Tests for PipelineConfigLoader"""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PipelineConfigLoader(tmp_path / "nope.yaml")

    def test_missing_pipeline_section(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("rules: []\n")

        with pytest.raises(ValueError, match="pipeline"):
            PipelineConfigLoader(path).load()

    def test_load_overrides_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "pipeline:\n"
            "  backend: memory\n"
            "  labels:\n"
            "    occupied: \"Pallet Occupied\"\n"
            "  apply_expiry_to_empty_pallets: false\n"
        )

        config = PipelineConfigLoader(path).load()

        assert config.backend == "memory"
        assert config.labels.occupied == "Pallet Occupied"
        assert config.labels.empty == "Empty"
        assert config.apply_expiry_to_empty_pallets is False

    def test_sample_config_loads(self, project_root):
        config = PipelineConfigLoader(Path(project_root) / "config" / "pipeline.yaml").load()
        assert config.tables.status == "Pallet_Status_02"
        assert config.backend == "csv"

    def test_invalid_backend_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("pipeline:\n  backend: sheets\n")

        with pytest.raises(ValidationError):
            PipelineConfigLoader(path).load()


class TestEnvOverrides:
    """Tests for environment variable overrides"""

    def test_overrides_top_level_and_sections(self):
        merged = apply_env_overrides(
            {"backend": "csv", "database": {"host": "db"}},
            {"PALLETSYNC_BACKEND": "postgres", "DB_PORT": "6543", "DB_PASSWORD": "secret"},
        )

        assert merged["backend"] == "postgres"
        assert merged["database"] == {"host": "db", "port": "6543", "password": "secret"}

    def test_source_settings_not_mutated(self):
        settings = {"database": {"host": "db"}}
        apply_env_overrides(settings, {"DB_HOST": "other"})
        assert settings == {"database": {"host": "db"}}

    def test_empty_values_ignored(self):
        assert apply_env_overrides({"backend": "csv"}, {"PALLETSYNC_BACKEND": ""}) == {"backend": "csv"}

    def test_load_config_without_file(self):
        config = load_config(environ={"PALLETSYNC_CSV_DIR": "/srv/tables", "LOG_FORMAT": "text"})

        assert isinstance(config, PipelineConfig)
        assert config.csv_dir == Path("/srv/tables")
        assert config.log_format == "text"
        assert config.database.port == 5432

    def test_load_config_file_then_env(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("pipeline:\n  backend: memory\n  log_level: DEBUG\n")

        config = load_config(path, environ={"LOG_LEVEL": "WARNING"})

        assert config.backend == "memory"
        assert config.log_level == "WARNING"
