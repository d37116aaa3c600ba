"""Configuration system with layered loading and validation.

Implements a hierarchical configuration system with the following precedence:
1. Default values (lowest priority)
2. JSON configuration files (materials.json, operations.json, headers.json)
3. Environment variables
4. Command-line arguments (highest priority)

Configuration is deep-merged across all sources, allowing partial overrides
at any level of the configuration hierarchy.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import argparse

from loguru import logger

from core.exceptions import ConfigurationError
from intake.confidence import ScoringWeights
from intake.models import SOURCE_METHODS

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ParserConfig:
    """Defaults applied to every parsed line or row.

    Attributes:
        source_method: Ingestion channel recorded on each part
        default_material_id: Material used when none is recognized
        default_thickness_mm: Thickness used when none is recognized
        default_edgeband_id: Edgeband attached to detected edging
        max_workers: Thread pool size for batch parsing (None = sequential)
    """
    source_method: str = "paste_parser"
    default_material_id: str = "MAT-WHITE-18"
    default_thickness_mm: float = 18.0
    default_edgeband_id: str = "EB-WHITE-0.8"
    max_workers: Optional[int] = None

    def __post_init__(self):
        if self.source_method not in SOURCE_METHODS:
            raise ConfigurationError(f"Invalid source_method: {self.source_method}")
        if not self.default_material_id:
            raise ConfigurationError("default_material_id must not be empty")
        if self.default_thickness_mm <= 0:
            raise ConfigurationError(f"Invalid default_thickness_mm: {self.default_thickness_mm}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError(f"Invalid max_workers: {self.max_workers}")


@dataclass(frozen=True)
class ScoringConfig:
    """Confidence penalties; see ``intake.confidence.ScoringWeights``."""
    material_default: float = 0.20
    quantity_default: float = 0.10
    thickness_default: float = 0.0
    ambiguous_quantity: float = 0.05
    unusual_dimensions: float = 0.05
    floor: float = 0.10

    def __post_init__(self):
        self.to_weights()

    def to_weights(self) -> ScoringWeights:
        return ScoringWeights(
            material_default=self.material_default,
            quantity_default=self.quantity_default,
            thickness_default=self.thickness_default,
            ambiguous_quantity=self.ambiguous_quantity,
            unusual_dimensions=self.unusual_dimensions,
            floor=self.floor,
        )


@dataclass(frozen=True)
class ExportConfig:
    """Output locations.

    Attributes:
        excel_path: Review workbook to write (None = print JSON)
        session_log_dir: Directory for session log files (None = stderr only)
    """
    excel_path: Optional[str] = None
    session_log_dir: Optional[str] = None


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration.

    Aggregates all configuration sections and loaded JSON data.

    Attributes:
        parser: Parsing defaults
        scoring: Confidence penalties
        export: Output locations
        materials_data: Extra material keywords (materials.json)
        operations_data: Extra hole/CNC phrases (operations.json)
        headers_data: Extra header keywords per field (headers.json)
        debug: Debug mode flag
        log_level: Logging verbosity level
    """
    parser: ParserConfig
    scoring: ScoringConfig
    export: ExportConfig

    # Loaded from JSON files
    materials_data: Dict[str, Any] = field(default_factory=dict)
    operations_data: Dict[str, Any] = field(default_factory=dict)
    headers_data: Dict[str, Any] = field(default_factory=dict)

    debug: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log_level: {self.log_level}")


class ConfigLoader:
    """Centralized configuration loader with validation and hierarchy.

    Implements the configuration loading strategy with proper precedence
    and deep merging of nested configuration dictionaries.
    """

    def __init__(self, config_dir: Path = Path("config")):
        self.config_dir = Path(config_dir)

    def load(self, argv: List[str]) -> Tuple[AppConfig, List[str]]:
        """Load configuration with proper hierarchy: defaults → files → env → CLI.

        Args:
            argv: Command-line arguments to parse

        Returns:
            Tuple of (AppConfig instance, unknown CLI arguments)
        """
        # 1. Start with defaults
        config_dict = self._get_defaults()

        # 2. Load from JSON files (deep merge)
        json_data = self._load_json_configs()
        self._deep_update(config_dict, json_data)

        # 3. Override with environment variables (deep merge)
        env_overrides = self._load_env_overrides()
        self._deep_update(config_dict, env_overrides)

        # 4. Parse CLI arguments (highest priority, deep merge)
        cli_overrides, unknown_args = self._parse_cli_args(argv)
        self._deep_update(config_dict, cli_overrides)

        # 5. Build and validate final config
        config = self._build_config(config_dict)
        return config, unknown_args

    def _get_defaults(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return {
            "parser": {
                "source_method": "paste_parser",
                "default_material_id": "MAT-WHITE-18",
                "default_thickness_mm": 18.0,
                "default_edgeband_id": "EB-WHITE-0.8",
                "max_workers": None,
            },
            "scoring": {},
            "export": {
                "excel_path": None,
                "session_log_dir": None,
            },
            "debug": False,
            "log_level": "INFO",
        }

    def _load_json_configs(self) -> Dict[str, Any]:
        """Load all JSON configuration files.

        ``operations.json`` may also carry a ``scoring`` section with
        penalty overrides.

        Returns:
            Dictionary containing loaded JSON data, with empty dicts for missing files
        """
        json_configs: Dict[str, Any] = {}

        json_files = {
            "materials_data": "materials.json",
            "operations_data": "operations.json",
            "headers_data": "headers.json",
        }

        for key, filename in json_files.items():
            file_path = self.config_dir / filename
            if file_path.exists():
                try:
                    with open(file_path, 'r', encoding='utf-8') as f:
                        json_configs[key] = json.load(f)
                except (json.JSONDecodeError, IOError) as e:
                    logger.warning(f"Failed to load {filename}: {e}")
                    json_configs[key] = {}
            else:
                json_configs[key] = {}

        scoring = json_configs.get("operations_data", {}).get("scoring")
        if isinstance(scoring, dict):
            json_configs["scoring"] = dict(scoring)

        return json_configs

    def _load_env_overrides(self) -> Dict[str, Any]:
        """Load configuration overrides from environment variables.

        Supported environment variables:
        - CUTLIST_DEFAULT_MATERIAL: Default material id
        - CUTLIST_DEFAULT_THICKNESS: Default thickness in mm
        - CUTLIST_DEFAULT_EDGEBAND: Default edgeband id
        - CUTLIST_SOURCE_METHOD: Ingestion channel
        - CUTLIST_MAX_WORKERS: Thread pool size for batch parsing
        - CUTLIST_EXPORT_PATH: Review workbook path
        - DEBUG: Enable debug mode
        - LOG_LEVEL: Set logging level

        Returns:
            Dictionary with environment-based overrides
        """
        overrides: Dict[str, Any] = {}
        parser_overrides: Dict[str, Any] = {}

        material = os.getenv("CUTLIST_DEFAULT_MATERIAL")
        if material:
            parser_overrides["default_material_id"] = material

        thickness = os.getenv("CUTLIST_DEFAULT_THICKNESS")
        if thickness:
            parser_overrides["default_thickness_mm"] = self._env_number("CUTLIST_DEFAULT_THICKNESS", thickness, float)

        edgeband = os.getenv("CUTLIST_DEFAULT_EDGEBAND")
        if edgeband:
            parser_overrides["default_edgeband_id"] = edgeband

        source_method = os.getenv("CUTLIST_SOURCE_METHOD")
        if source_method:
            parser_overrides["source_method"] = source_method

        workers = os.getenv("CUTLIST_MAX_WORKERS")
        if workers:
            parser_overrides["max_workers"] = self._env_number("CUTLIST_MAX_WORKERS", workers, int)

        if parser_overrides:
            overrides["parser"] = parser_overrides

        export_path = os.getenv("CUTLIST_EXPORT_PATH")
        if export_path:
            overrides["export"] = {"excel_path": export_path}

        # Debug and logging
        if self._env_bool("DEBUG"):
            overrides["debug"] = True

        log_level = os.getenv("LOG_LEVEL")
        if log_level:
            overrides["log_level"] = log_level.upper()

        return overrides

    def _parse_cli_args(self, argv: List[str]) -> Tuple[Dict[str, Any], List[str]]:
        """Parse CLI arguments.

        Args:
            argv: Command-line arguments

        Returns:
            Tuple of (overrides dictionary, unknown arguments)
        """
        parser = argparse.ArgumentParser(description="Cutlist intake", add_help=False, allow_abbrev=False)

        parser.add_argument("--material", help="Default material id")
        parser.add_argument("--thickness", type=float, help="Default thickness in mm")
        parser.add_argument("--edgeband", help="Default edgeband id")
        parser.add_argument(
            "--source",
            choices=sorted(SOURCE_METHODS),
            help="Ingestion channel recorded on each part"
        )
        parser.add_argument("--workers", type=int, help="Thread pool size for batch parsing")
        parser.add_argument("--export", help="Write an Excel review workbook to this path")
        parser.add_argument("--log-dir", help="Directory for session log files")
        parser.add_argument(
            "--debug",
            action="store_true",
            help="Enable debug mode"
        )
        parser.add_argument(
            "--log-level",
            choices=["DEBUG", "INFO", "WARNING", "ERROR"],
            help="Set logging level"
        )

        try:
            known, unknown = parser.parse_known_args(argv)
        except SystemExit as e:
            raise ConfigurationError(f"Invalid command-line arguments: {' '.join(argv)}") from e

        # Build overrides from parsed arguments
        overrides: Dict[str, Any] = {}
        parser_overrides: Dict[str, Any] = {}
        if known.material:
            parser_overrides["default_material_id"] = known.material
        if known.thickness is not None:
            parser_overrides["default_thickness_mm"] = known.thickness
        if known.edgeband:
            parser_overrides["default_edgeband_id"] = known.edgeband
        if known.source:
            parser_overrides["source_method"] = known.source
        if known.workers is not None:
            parser_overrides["max_workers"] = known.workers
        if parser_overrides:
            overrides["parser"] = parser_overrides

        export_overrides: Dict[str, Any] = {}
        if known.export:
            export_overrides["excel_path"] = known.export
        if known.log_dir:
            export_overrides["session_log_dir"] = known.log_dir
        if export_overrides:
            overrides["export"] = export_overrides

        if known.debug:
            overrides["debug"] = True
        if known.log_level:
            overrides["log_level"] = known.log_level

        return overrides, unknown

    def _build_config(self, config_dict: Dict[str, Any]) -> AppConfig:
        """Build and validate the final configuration object.

        Args:
            config_dict: Merged configuration dictionary

        Returns:
            Validated AppConfig instance

        Raises:
            ConfigurationError: If configuration is invalid
        """
        try:
            parser_config = ParserConfig(**config_dict.get("parser", {}))
            scoring_config = ScoringConfig(**config_dict.get("scoring", {}))
            export_config = ExportConfig(**config_dict.get("export", {}))
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration key: {e}") from e

        log_level = config_dict.get("log_level", "INFO")
        if config_dict.get("debug", False) and log_level == "INFO":
            log_level = "DEBUG"

        # Build main config
        return AppConfig(
            parser=parser_config,
            scoring=scoring_config,
            export=export_config,
            materials_data=config_dict.get("materials_data", {}),
            operations_data=config_dict.get("operations_data", {}),
            headers_data=config_dict.get("headers_data", {}),
            debug=config_dict.get("debug", False),
            log_level=log_level,
        )

    @staticmethod
    def _env_number(name: str, raw: str, kind):
        try:
            return kind(raw.strip())
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {name}: {raw!r}") from e

    @staticmethod
    def _env_bool(name: str, default: bool = False) -> bool:
        """Parse boolean from environment variable.

        Args:
            name: Environment variable name
            default: Default value if not set

        Returns:
            Boolean value (True for "1", "true", "yes", "y", "on")
        """
        val = os.getenv(name)
        if val is None:
            return default
        return val.strip().lower() in {"1", "true", "yes", "y", "on"}

    @staticmethod
    def _deep_update(target: Dict[str, Any], updates: Dict[str, Any]) -> None:
        """Recursively update mapping 'target' with 'updates' without clobbering nested dicts.

        - Only keys present in updates are applied.
        - For dict values, merge recursively.
        - For non-dict values, assign directly.

        Args:
            target: Dictionary to update (modified in place)
            updates: Dictionary with new values
        """
        for key, new_val in updates.items():
            if isinstance(new_val, dict) and isinstance(target.get(key), dict):
                ConfigLoader._deep_update(target[key], new_val)  # type: ignore[index]
            else:
                target[key] = new_val


def parse_app_args(argv: List[str]) -> Tuple[AppConfig, List[str]]:
    """Parse application configuration.

    Convenience function for creating a ConfigLoader and loading configuration.

    Args:
        argv: Command-line arguments

    Returns:
        Tuple of (AppConfig instance, unknown arguments)
    """
    loader = ConfigLoader()
    return loader.load(argv)


__all__ = ["AppConfig", "ParserConfig", "ScoringConfig", "ExportConfig", "ConfigLoader", "parse_app_args"]
