"""Unit tests for configuration loading and the configuration service."""
import json

import pytest

from config.config import AppConfig, ConfigLoader, ExportConfig, ParserConfig, ScoringConfig
from config.service import ConfigurationService, ConfigurationServiceFactory
from core.exceptions import ConfigurationError
from intake.models import ParseContext

ENV_VARS = [
    "CUTLIST_DEFAULT_MATERIAL",
    "CUTLIST_DEFAULT_THICKNESS",
    "CUTLIST_DEFAULT_EDGEBAND",
    "CUTLIST_SOURCE_METHOD",
    "CUTLIST_MAX_WORKERS",
    "CUTLIST_EXPORT_PATH",
    "DEBUG",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestConfigurationService:
    """Tests for ConfigurationService facade."""

    @pytest.fixture
    def mock_config(self):
        """Create an AppConfig for testing."""
        return AppConfig(
            parser=ParserConfig(
                source_method="text",
                default_material_id="MAT-BIRCH-18",
                default_thickness_mm=16.0,
                default_edgeband_id="EB-BIRCH-1",
                max_workers=2,
            ),
            scoring=ScoringConfig(material_default=0.3),
            export=ExportConfig(excel_path="exports/review.xlsx", session_log_dir="logs/sessions"),
            materials_data={"materials": {"MAT-BIRCH-18": ["birch ply"]}},
            headers_data={"fields": {"length": ["langd"]}},
            debug=False,
            log_level="INFO",
        )

    def test_parser_properties(self, mock_config):
        # Arrange
        service = ConfigurationService(mock_config)

        # Assert
        assert service.source_method == "text"
        assert service.default_material_id == "MAT-BIRCH-18"
        assert service.default_thickness_mm == 16.0
        assert service.max_workers == 2

    def test_export_properties(self, mock_config):
        service = ConfigurationService(mock_config)

        assert service.excel_path == "exports/review.xlsx"
        assert service.session_log_dir == "logs/sessions"

    def test_parse_context(self, mock_config):
        # Act
        context = ConfigurationService(mock_config).parse_context()

        # Assert
        assert context == ParseContext(
            source_method="text",
            default_material_id="MAT-BIRCH-18",
            default_thickness_mm=16.0,
            default_edgeband_id="EB-BIRCH-1",
        )

    def test_parse_context_override(self, mock_config):
        context = ConfigurationService(mock_config).parse_context("voice")

        assert context.source_method == "voice"

    def test_vocabulary_includes_configured_materials(self, mock_config):
        vocabulary = ConfigurationService(mock_config).vocabulary()

        assert ("birch ply", "MAT-BIRCH-18") in vocabulary.materials

    def test_scorer_uses_configured_weights(self, mock_config):
        scorer = ConfigurationService(mock_config).confidence_scorer()

        assert scorer.weights.material_default == 0.3

    def test_target_fields_extended(self, mock_config):
        fields = ConfigurationService(mock_config).target_fields()

        length = next(f for f in fields if f.id == "length")
        assert "langd" in length.keywords

    def test_to_dict(self, mock_config):
        data = ConfigurationService(mock_config).to_dict()

        assert data["parser"]["default_material_id"] == "MAT-BIRCH-18"
        assert data["export"]["excel_path"] == "exports/review.xlsx"
        assert data["log_level"] == "INFO"

    def test_raw_config(self, mock_config):
        assert ConfigurationService(mock_config).raw_config is mock_config


class TestConfigLoader:
    """Tests for layered configuration loading."""

    def test_defaults(self, tmp_path):
        config, unknown = ConfigLoader(tmp_path).load([])

        assert config.parser.default_material_id == "MAT-WHITE-18"
        assert config.parser.default_thickness_mm == 18.0
        assert config.parser.max_workers is None
        assert config.log_level == "INFO"
        assert unknown == []

    def test_json_files(self, tmp_path):
        (tmp_path / "materials.json").write_text(json.dumps({"materials": {"MAT-X": ["x board"]}}))
        (tmp_path / "operations.json").write_text(json.dumps({"scoring": {"quantity_default": 0.2}}))

        config, _ = ConfigLoader(tmp_path).load([])

        assert config.materials_data["materials"] == {"MAT-X": ["x board"]}
        assert config.scoring.quantity_default == 0.2

    def test_broken_json_is_ignored(self, tmp_path):
        (tmp_path / "headers.json").write_text("{not json")

        config, _ = ConfigLoader(tmp_path).load([])

        assert config.headers_data == {}

    def test_env_overrides_json_and_cli_overrides_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CUTLIST_DEFAULT_MATERIAL", "MAT-ENV")
        monkeypatch.setenv("CUTLIST_DEFAULT_THICKNESS", "16")

        config, _ = ConfigLoader(tmp_path).load(["--material", "MAT-CLI"])

        assert config.parser.default_material_id == "MAT-CLI"
        assert config.parser.default_thickness_mm == 16.0

    def test_unknown_args_returned(self, tmp_path):
        _, unknown = ConfigLoader(tmp_path).load(["text", "cuts.txt", "--voice", "--workers", "4"])

        assert unknown == ["text", "cuts.txt", "--voice"]

    def test_debug_raises_log_level(self, tmp_path):
        config, _ = ConfigLoader(tmp_path).load(["--debug"])

        assert config.debug is True
        assert config.log_level == "DEBUG"

    def test_invalid_env_number(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CUTLIST_MAX_WORKERS", "many")

        with pytest.raises(ConfigurationError):
            ConfigLoader(tmp_path).load([])

    @pytest.mark.parametrize("argv", [["--thickness", "0"], ["--source", "fax"], ["--workers", "0"]])
    def test_invalid_values_rejected(self, tmp_path, argv):
        with pytest.raises(ConfigurationError):
            ConfigLoader(tmp_path).load(argv)

    def test_invalid_log_level_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError):
            ConfigLoader(tmp_path).load([])


class TestConfigurationServiceFactory:
    """Tests for ConfigurationServiceFactory."""

    def test_create_from_args(self, tmp_path):
        service, unknown = ConfigurationServiceFactory.create_from_args(
            ["--edgeband", "EB-OAK-1", "table", "cuts.xlsx"], config_dir=tmp_path
        )

        assert service.default_edgeband_id == "EB-OAK-1"
        assert unknown == ["table", "cuts.xlsx"]

    def test_create_from_config(self):
        config = AppConfig(parser=ParserConfig(), scoring=ScoringConfig(), export=ExportConfig())

        service = ConfigurationServiceFactory.create_from_config(config)

        assert service.raw_config is config
