"""
Pipeline configuration management.

Loads backend, table and label settings from a YAML file and applies
environment variable overrides on top.
"""

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field


class TableNames(BaseModel):
    """Names of the four tables (sheets) the engine works on."""

    build: str = "Pallet_Build_IB_04"
    ledger: str = "Pallet_Transaction_Ledger"
    status: str = "Pallet_Status_02"
    grn: str = "GRN_Entry_IB_01"


class StatusLabels(BaseModel):
    """Labels written into the ledger, status view and GRN table."""

    ready_for_putaway: str = "Ready For Putaway"
    unloading_in_progress: str = "Unloading in Progress"
    occupied: str = "Occupied"
    empty: str = "Empty"
    unassigned: str = "Unassigned"
    not_applicable: str = "N/A"


class DatabaseSettings(BaseModel):
    """PostgreSQL settings for the postgres backend."""

    host: str = "localhost"
    port: int = 5432
    database: str = "palletsync"
    user: str = "palletsync"
    password: str | None = None
    table_name: str = "sheet_rows"
    min_size: int = Field(1, ge=1)
    max_size: int = Field(4, ge=1)


class PipelineConfig(BaseModel):
    """
    Complete pipeline configuration.

    Attributes:
        backend: Table store backend ("memory", "csv" or "postgres")
        csv_dir: Directory holding one CSV file per table (csv backend)
        tables: Table names
        labels: Status labels
        database: PostgreSQL settings (postgres backend)
        apply_expiry_to_empty_pallets: Whether a build expiry date is still
            written onto a row the latest ledger fact just emptied
        log_level: Logging level name
        log_format: "json" or "text"
    """

    backend: Literal["memory", "csv", "postgres"] = "csv"
    csv_dir: Path = Path("data")
    tables: TableNames = Field(default_factory=TableNames)
    labels: StatusLabels = Field(default_factory=StatusLabels)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    apply_expiry_to_empty_pallets: bool = True
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"


class PipelineConfigLoader:
    """
    Loads pipeline configuration from YAML files.

    Expected YAML format:
    ```yaml
    pipeline:
      backend: csv
      csv_dir: data
      tables:
        build: Pallet_Build_IB_04
      labels:
        occupied: "Occupied"
      apply_expiry_to_empty_pallets: true
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Pipeline configuration file not found: {config_path}")

    def load_settings(self) -> dict[str, Any]:
        """
        Load the raw `pipeline` section.

        Raises:
            ValueError: If the YAML has no `pipeline` mapping
        """
        with open(self.config_path) as f:
            config = yaml.safe_load(f)

        if not config or "pipeline" not in config:
            raise ValueError("Configuration file must contain 'pipeline' section")

        settings = config["pipeline"] or {}
        if not isinstance(settings, dict):
            raise ValueError("'pipeline' section must be a mapping")
        return settings

    def load(self) -> PipelineConfig:
        return PipelineConfig(**self.load_settings())


# Environment variable -> (section, key); section None means top level
ENV_OVERRIDES = {
    "PALLETSYNC_BACKEND": (None, "backend"),
    "PALLETSYNC_CSV_DIR": (None, "csv_dir"),
    "LOG_LEVEL": (None, "log_level"),
    "LOG_FORMAT": (None, "log_format"),
    "DB_HOST": ("database", "host"),
    "DB_PORT": ("database", "port"),
    "DB_NAME": ("database", "database"),
    "DB_USER": ("database", "user"),
    "DB_PASSWORD": ("database", "password"),
}


def apply_env_overrides(settings: dict[str, Any], environ: dict[str, str] | None = None) -> dict[str, Any]:
    """
    Overlay environment variables onto raw settings.

    Args:
        settings: Raw settings (not modified)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        New settings dict with overrides applied
    """
    environ = os.environ if environ is None else environ
    merged = {k: (dict(v) if isinstance(v, dict) else v) for k, v in settings.items()}

    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue
        if section is None:
            merged[key] = value
        else:
            merged.setdefault(section, {})[key] = value

    return merged


def load_config(
    config_path: str | Path | None = None,
    environ: dict[str, str] | None = None,
) -> PipelineConfig:
    """
    Load configuration from an optional YAML file plus the environment.

    Args:
        config_path: YAML file; when None, only defaults and env apply
        environ: Environment mapping (defaults to os.environ)

    Returns:
        PipelineConfig
    """
    settings: dict[str, Any] = {}
    if config_path is not None:
        settings = PipelineConfigLoader(config_path).load_settings()
    return PipelineConfig(**apply_env_overrides(settings, environ))
