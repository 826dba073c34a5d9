# -*- coding: utf-8 -*-
"""Centralized configuration for the sales report pipeline.

Reads pipeline.toml and applies environment overrides for secrets and
deployment-specific values. Every component receives the pieces it needs from
a ReportConfig instance built at the composition root; nothing reads process
state on its own.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import tomllib

from src.utils import get_workspace_root, resolve_path
from src.utils.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_TAX_RATE = 0.19
DEFAULT_CATEGORY = "OTHERS"


@dataclass
class ToteatSettings:
    """Vendor API connection settings."""

    api_url: str = "https://toteatdev.appspot.com/mw/or/1.0"
    api_key: Optional[str] = None
    restaurant_id: Optional[str] = None
    local_id: str = "1"
    user_id: str = "1001"
    environment: str = "PROD"
    timeout_seconds: float = 10.0
    max_retries: int = 3
    use_local_file: bool = False
    local_file: Path = Path("data/sample-collection.json")


@dataclass
class EmailSettings:
    """Email notification settings."""

    sender: str = "Ventas <noreply@example.com>"
    recipients: List[str] = field(default_factory=list)
    subject_prefix: str = "Ventas"
    credentials_path: Path = Path("credentials.json")
    token_path: Path = Path("token.json")


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class ReportConfig:
    """Pipeline configuration.

    Reads pipeline.toml and exposes typed sections for the vendor client,
    report layout, category rules and email notifier.

    Usage:
        config = ReportConfig()
        rules = config.category_rules
        export_dir = config.export_dir
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        environ: Optional[Dict[str, str]] = None,
    ):
        """Initialize ReportConfig from pipeline.toml.

        Args:
            config_path: Path to pipeline.toml. If None, uses default location.
            environ: Environment mapping for overrides. If None, uses os.environ.

        Raises:
            FileNotFoundError: If config file not found.
            ConfigError: If the file is not valid TOML.
        """
        if config_path is None:
            config_path = get_workspace_root() / "pipeline.toml"

        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}. "
                "Copy pipeline.toml from the repository root and adjust it."
            )

        try:
            with open(config_path, "rb") as f:
                self._config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

        env = os.environ if environ is None else environ

        dirs = self._config.get("dirs", {})
        self.export_dir = resolve_path(Path(dirs.get("exports", "data/exports")))
        self.upload_dir = resolve_path(Path(dirs.get("uploads", "data/uploads")))

        report = self._config.get("report", {})
        self.location_label: str = report.get("location_label", "Sin nombre")
        self.tax_rate: float = float(report.get("tax_rate", DEFAULT_TAX_RATE))
        self.default_category: str = report.get("default_category", DEFAULT_CATEGORY)
        self.decimal_comma: bool = bool(report.get("decimal_comma", True))
        self.file_prefix: str = report.get("file_prefix", "ventas")

        self.category_rules = self._load_category_rules()
        self.toteat = self._load_toteat(env)
        self.email = self._load_email(env)
        self.log_level: str = env.get(
            "LOG_LEVEL", self._config.get("log_level", "INFO")
        )

    def _load_category_rules(self) -> Optional[List[Tuple[Tuple[str, ...], str]]]:
        """Load ordered category rules; None means use the built-in table."""
        rules = self._config.get("categories", {}).get("rules")
        if not rules:
            return None

        loaded = []
        for rule in rules:
            label = str(rule.get("label", "")).strip()
            keywords = tuple(
                str(keyword).lower() for keyword in rule.get("keywords", []) if keyword
            )
            if not label or not keywords:
                logger.warning(f"Skipping incomplete category rule: {rule}")
                continue
            loaded.append((keywords, label))

        logger.debug(f"Loaded {len(loaded)} category rules from config")
        return loaded

    def _load_toteat(self, env) -> ToteatSettings:
        section: Dict[str, Any] = self._config.get("toteat", {})
        settings = ToteatSettings(
            api_url=section.get("api_url", ToteatSettings.api_url),
            api_key=section.get("api_key"),
            restaurant_id=section.get("restaurant_id"),
            local_id=str(section.get("local_id", ToteatSettings.local_id)),
            user_id=str(section.get("user_id", ToteatSettings.user_id)),
            environment=section.get("environment", ToteatSettings.environment),
            timeout_seconds=float(
                section.get("timeout_seconds", ToteatSettings.timeout_seconds)
            ),
            max_retries=int(section.get("max_retries", ToteatSettings.max_retries)),
            use_local_file=bool(section.get("use_local_file", False)),
            local_file=resolve_path(
                Path(section.get("local_file", str(ToteatSettings.local_file)))
            ),
        )

        if env.get("TOTEAT_API_URL"):
            settings.api_url = env["TOTEAT_API_URL"]
        if env.get("TOTEAT_API_KEY"):
            settings.api_key = env["TOTEAT_API_KEY"]
        if env.get("TOTEAT_RESTAURANT_ID"):
            settings.restaurant_id = env["TOTEAT_RESTAURANT_ID"]
        if env.get("TOTEAT_LOCAL_ID"):
            settings.local_id = env["TOTEAT_LOCAL_ID"]
        if env.get("TOTEAT_API_USER_ID"):
            settings.user_id = env["TOTEAT_API_USER_ID"]
        if env.get("TOTEAT_ENVIRONMENT"):
            settings.environment = env["TOTEAT_ENVIRONMENT"]
        if env.get("TOTEAT_USE_LOCAL_FILE"):
            settings.use_local_file = _env_flag(env["TOTEAT_USE_LOCAL_FILE"])

        return settings

    def _load_email(self, env) -> EmailSettings:
        section: Dict[str, Any] = self._config.get("email", {})
        recipients = section.get("recipients", [])
        if isinstance(recipients, str):
            recipients = [recipients]

        settings = EmailSettings(
            sender=section.get("sender", EmailSettings.sender),
            recipients=[r for r in recipients if r],
            subject_prefix=section.get("subject_prefix", EmailSettings.subject_prefix),
            credentials_path=resolve_path(
                Path(section.get("credentials_path", "credentials.json"))
            ),
            token_path=resolve_path(Path(section.get("token_path", "token.json"))),
        )

        if env.get("EMAIL_FROM"):
            settings.sender = env["EMAIL_FROM"]
        if env.get("EMAIL_TO"):
            settings.recipients = [
                r.strip() for r in env["EMAIL_TO"].split(",") if r.strip()
            ]

        return settings

    def report_filename(self, report_date: str, extension: str = "xlsx") -> str:
        """Build the export filename for a report date (YYYY-MM-DD)."""
        return f"{self.file_prefix}_{report_date}.{extension}"
