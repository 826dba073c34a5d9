"""Tests for ReportConfig loading and environment overrides."""

from pathlib import Path

import pytest

from src.utils import get_workspace_root
from src.utils.exceptions import ConfigError
from src.utils.report_config import ReportConfig

CONFIG_TOML = """
log_level = "DEBUG"

[dirs]
exports = "{exports}"

[toteat]
api_key = "from-file"
restaurant_id = "55"
local_id = 2
timeout_seconds = 5

[report]
location_label = "Domani Vitacura"
tax_rate = 0.10
file_prefix = "ventas_vitacura"

[email]
recipients = ["gerencia@example.com"]
subject_prefix = "Ventas Vitacura"

[[categories.rules]]
label = "PIZZAS"
keywords = ["Pizza", "margherita"]

[[categories.rules]]
label = "SIN KEYWORDS"
keywords = []
"""


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "pipeline.toml"
    path.write_text(
        CONFIG_TOML.format(exports=(tmp_path / "exports").as_posix()),
        encoding="utf-8",
    )
    return path


class TestReportConfig:
    """Test values read from pipeline.toml."""

    def test_report_section(self, config_path, tmp_path):
        config = ReportConfig(config_path, environ={})
        assert config.location_label == "Domani Vitacura"
        assert config.tax_rate == 0.10
        assert config.default_category == "OTHERS"
        assert config.decimal_comma is True
        assert config.export_dir == tmp_path / "exports"
        assert config.log_level == "DEBUG"

    def test_relative_dirs_resolved_against_workspace(self, config_path):
        config = ReportConfig(config_path, environ={})
        assert config.upload_dir == get_workspace_root() / "data" / "uploads"

    def test_toteat_section(self, config_path):
        toteat = ReportConfig(config_path, environ={}).toteat
        assert toteat.api_key == "from-file"
        assert toteat.restaurant_id == "55"
        assert toteat.local_id == "2"
        assert toteat.timeout_seconds == 5.0
        assert toteat.use_local_file is False

    def test_email_section(self, config_path):
        email = ReportConfig(config_path, environ={}).email
        assert email.recipients == ["gerencia@example.com"]
        assert email.subject_prefix == "Ventas Vitacura"

    def test_category_rules_lowercased_and_incomplete_skipped(self, config_path):
        rules = ReportConfig(config_path, environ={}).category_rules
        assert rules == [(("pizza", "margherita"), "PIZZAS")]

    def test_no_rules_uses_builtin_table(self, tmp_path):
        path = tmp_path / "pipeline.toml"
        path.write_text("[report]\n", encoding="utf-8")
        assert ReportConfig(path, environ={}).category_rules is None

    def test_report_filename(self, config_path):
        config = ReportConfig(config_path, environ={})
        assert config.report_filename("2024-05-01") == "ventas_vitacura_2024-05-01.xlsx"
        assert config.report_filename("2024-05-01", "csv").endswith(".csv")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ReportConfig(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "pipeline.toml"
        path.write_text("[report\nlocation_label = ", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            ReportConfig(path, environ={})

    def test_repository_config_loads(self):
        config = ReportConfig(environ={})
        assert config.category_rules[0][1] == "AGREGADO"
        assert config.toteat.local_file == Path(
            get_workspace_root() / "data" / "sample-collection.json"
        )


class TestEnvironmentOverrides:
    """Secrets and recipients come from the environment."""

    def test_toteat_overrides(self, config_path):
        config = ReportConfig(
            config_path,
            environ={
                "TOTEAT_API_KEY": "from-env",
                "TOTEAT_RESTAURANT_ID": "99",
                "TOTEAT_USE_LOCAL_FILE": "true",
                "TOTEAT_ENVIRONMENT": "DEV",
            },
        )
        assert config.toteat.api_key == "from-env"
        assert config.toteat.restaurant_id == "99"
        assert config.toteat.use_local_file is True
        assert config.toteat.environment == "DEV"

    def test_email_overrides(self, config_path):
        config = ReportConfig(
            config_path,
            environ={"EMAIL_TO": "a@example.com, b@example.com,", "EMAIL_FROM": "x"},
        )
        assert config.email.recipients == ["a@example.com", "b@example.com"]
        assert config.email.sender == "x"

    def test_log_level_override(self, config_path):
        config = ReportConfig(config_path, environ={"LOG_LEVEL": "WARNING"})
        assert config.log_level == "WARNING"

    def test_empty_values_ignored(self, config_path):
        config = ReportConfig(config_path, environ={"TOTEAT_API_KEY": ""})
        assert config.toteat.api_key == "from-file"
