"""Configuration service facade for simplified configuration access.

Implements the Facade pattern to provide a clean, simple interface
to the configuration system and builds the parser collaborators
(context, vocabulary, scorer, header fields) from it.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Tuple

from config.config import AppConfig, ConfigLoader
from intake.confidence import ConfidenceScorer, ScoringWeights
from intake.models import ParseContext
from intake.vocabulary import Vocabulary
from tabular.fields import TargetField, extend_fields


class ConfigurationService:
    """Facade for application configuration management.

    Provides simplified access to configuration values without
    deep nesting and verbose attribute access. All properties
    delegate to the underlying AppConfig instance.

    Example:
        config_service = ConfigurationService(config)
        material = config_service.default_material_id  # Instead of config.parser.default_material_id

    Attributes:
        _config: Underlying AppConfig instance
    """

    def __init__(self, config: AppConfig):
        self._config = config

    # Parser configuration shortcuts
    @property
    def source_method(self) -> str:
        """Get the ingestion channel recorded on parts."""
        return self._config.parser.source_method

    @property
    def default_material_id(self) -> str:
        return self._config.parser.default_material_id

    @property
    def default_thickness_mm(self) -> float:
        return self._config.parser.default_thickness_mm

    @property
    def default_edgeband_id(self) -> str:
        return self._config.parser.default_edgeband_id

    @property
    def max_workers(self) -> Optional[int]:
        """Get batch thread pool size (None means sequential)."""
        return self._config.parser.max_workers

    # Export/logging configuration
    @property
    def excel_path(self) -> Optional[str]:
        """Get review workbook path."""
        return self._config.export.excel_path

    @property
    def session_log_dir(self) -> Optional[str]:
        """Get session log directory."""
        return self._config.export.session_log_dir

    # General configuration
    @property
    def debug(self) -> bool:
        """Get debug mode status."""
        return self._config.debug

    @property
    def log_level(self) -> str:
        """Get log level."""
        return self._config.log_level

    # Collaborator builders
    def parse_context(self, source_method: Optional[str] = None) -> ParseContext:
        """Build the ParseContext for a run, optionally overriding the channel."""
        return ParseContext(
            source_method=source_method or self.source_method,
            default_material_id=self.default_material_id,
            default_thickness_mm=self.default_thickness_mm,
            default_edgeband_id=self.default_edgeband_id,
        )

    def vocabulary(self) -> Vocabulary:
        """Built-in keyword tables extended with materials.json / operations.json."""
        return Vocabulary.from_config_data(self._config.materials_data, self._config.operations_data)

    def scoring_weights(self) -> ScoringWeights:
        return self._config.scoring.to_weights()

    def confidence_scorer(self) -> ConfidenceScorer:
        return ConfidenceScorer(self.scoring_weights())

    def target_fields(self) -> Tuple[TargetField, ...]:
        """Header keyword table extended with headers.json."""
        return extend_fields(self._config.headers_data.get("fields", self._config.headers_data))

    # Direct config access (for advanced use)
    @property
    def raw_config(self) -> AppConfig:
        """Get raw configuration object.

        Returns:
            Underlying AppConfig instance for direct access
        """
        return self._config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary for serialization.

        Returns:
            Dictionary representation of current configuration
        """
        return {
            "parser": {
                "source_method": self.source_method,
                "default_material_id": self.default_material_id,
                "default_thickness_mm": self.default_thickness_mm,
                "default_edgeband_id": self.default_edgeband_id,
                "max_workers": self.max_workers,
            },
            "export": {
                "excel_path": self.excel_path,
                "session_log_dir": self.session_log_dir,
            },
            "debug": self.debug,
            "log_level": self.log_level,
        }


class ConfigurationServiceFactory:
    """Factory for creating ConfigurationService instances.

    Provides static factory methods for common creation patterns,
    encapsulating the construction logic.
    """

    @staticmethod
    def create_from_args(args: list[str], config_dir: Path = Path("config")) -> tuple[ConfigurationService, list[str]]:
        """Create configuration service from command-line arguments.

        Args:
            args: Command-line arguments
            config_dir: Directory holding the JSON configuration files

        Returns:
            Tuple of (ConfigurationService, unknown_args)
        """
        loader = ConfigLoader(config_dir)
        config, unknown_args = loader.load(args)
        return ConfigurationService(config), unknown_args

    @staticmethod
    def create_from_config(config: AppConfig) -> ConfigurationService:
        """Create configuration service from existing config."""
        return ConfigurationService(config)

    @staticmethod
    def create_default() -> ConfigurationService:
        """Create configuration service with defaults.

        Returns:
            ConfigurationService with default configuration
        """
        loader = ConfigLoader()
        config, _ = loader.load([])
        return ConfigurationService(config)
