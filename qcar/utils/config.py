"""Configuration management for the claim reporting backend."""

import os
import yaml
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError


@dataclass
class SharpnessConfig:
    """Blur detection tuning."""
    max_dimension: int = 200
    blur_threshold: float = 100.0
    acceptable_score: int = 60
    clamp_upscale: bool = True


@dataclass
class ReportConfig:
    """Claim report layout settings."""
    brand: str = "QCAR"
    title: str = "Insurance Claim Report"
    page_size: str = "A4"
    margin_mm: float = 20.0
    photo_width_mm: float = 80.0
    photo_height_mm: float = 60.0
    summary_truncate: int = 25
    compress: bool = True


@dataclass
class StorageConfig:
    """Storage paths configuration."""
    reports_dir: str = "data/reports"
    photos_dir: str = "data/photos"


@dataclass
class ServerConfig:
    """Upload limits for the HTTP surface."""
    max_file_size_mb: int = 10
    max_photos: int = 6


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str = ""


@dataclass
class Config:
    """Main configuration class."""
    sharpness: SharpnessConfig
    report: ReportConfig
    storage: StorageConfig
    server: ServerConfig
    logging: LoggingConfig

    @classmethod
    def default(cls) -> "Config":
        """Built-in defaults, no file access."""
        return cls(
            sharpness=SharpnessConfig(),
            report=ReportConfig(),
            storage=StorageConfig(),
            server=ServerConfig(),
            logging=LoggingConfig(),
        )

    @classmethod
    def load(cls, config_path: str = "config.yaml") -> "Config":
        """
        Load configuration from file and environment variables.

        Environment variables override config file values:
        - LOG_LEVEL
        - BLUR_THRESHOLD
        - REPORTS_DIR
        - MAX_FILE_SIZE_MB

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Config instance with loaded settings

        Raises:
            ConfigurationError: If the file is missing or a value is malformed
        """
        if not Path(config_path).exists():
            raise ConfigurationError.missing(config_path)

        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}

        try:
            sharpness_data = config_data["sharpness"]
            sharpness_config = SharpnessConfig(
                max_dimension=int(sharpness_data["max_dimension"]),
                blur_threshold=float(
                    os.getenv("BLUR_THRESHOLD", sharpness_data["blur_threshold"])
                ),
                acceptable_score=int(sharpness_data["acceptable_score"]),
                clamp_upscale=bool(sharpness_data.get("clamp_upscale", True)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError.invalid("sharpness", e)

        try:
            report_data = config_data["report"]
            report_config = ReportConfig(
                brand=report_data["brand"],
                title=report_data["title"],
                page_size=report_data.get("page_size", "A4"),
                margin_mm=float(report_data["margin_mm"]),
                photo_width_mm=float(report_data["photo_width_mm"]),
                photo_height_mm=float(report_data["photo_height_mm"]),
                summary_truncate=int(report_data["summary_truncate"]),
                compress=bool(report_data.get("compress", True)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError.invalid("report", e)

        try:
            storage_config = StorageConfig(
                reports_dir=os.getenv("REPORTS_DIR", config_data["storage"]["reports_dir"]),
                photos_dir=config_data["storage"]["photos_dir"],
            )
        except (KeyError, TypeError) as e:
            raise ConfigurationError.invalid("storage", e)

        try:
            server_data = config_data.get("server", {}) or {}
            server_config = ServerConfig(
                max_file_size_mb=int(
                    os.getenv("MAX_FILE_SIZE_MB", server_data.get("max_file_size_mb", 10))
                ),
                max_photos=int(server_data.get("max_photos", 6)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError.invalid("server", e)

        logging_data = config_data.get("logging", {}) or {}
        logging_config = LoggingConfig(
            level=os.getenv("LOG_LEVEL", logging_data.get("level", "INFO")),
            format=logging_data.get("format", LoggingConfig.format),
            file=logging_data.get("file", "") or "",
        )

        return cls(
            sharpness=sharpness_config,
            report=report_config,
            storage=storage_config,
            server=server_config,
            logging=logging_config,
        )
