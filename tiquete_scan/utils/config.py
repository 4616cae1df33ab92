"""Configuration management for the receipt scanning system.

Loads and validates YAML configuration with defaults tuned for
photographed weighing tickets: image conditioning, Tesseract settings,
and the extractor's company allow-list and guide keywords.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("configs/config.yaml")

DEFAULT_CHAR_WHITELIST = (
    "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
    "áéíóúÁÉÍÓÚñÑ:.-/, $"
)

# Includes the usual OCR misreadings of "guía", "transporte" and "vehículo".
DEFAULT_GUIDE_KEYWORDS = [
    "guia",
    "transp",
    "vehi",
    "gula",
    "cuia",
    "cul - ae",
    "vehicu",
    "ranspor",
    "ansp",
]


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ConditioningConfig(_Section):
    """Configuration for the receipt image conditioner."""

    resize_target_width: int | None = Field(default=3000, gt=0)
    grayscale: bool = True
    contrast_percent: float = Field(default=160.0, ge=0)
    brightness_percent: float = Field(default=110.0, ge=0)
    sharpen: bool = True
    adaptive_threshold: bool = False
    auto_crop: bool = False
    threshold_window_divisor: int = Field(default=16, gt=0)
    threshold_sensitivity: float = Field(default=0.12, ge=0, lt=1)
    crop_stride: int = Field(default=15, gt=0)
    crop_ink_threshold: int = Field(default=120, ge=0, le=255)
    crop_margin: int = Field(default=50, ge=0)
    crop_min_size: int = Field(default=200, ge=0)
    jpeg_quality: float = Field(default=0.9, gt=0, le=1)


class OCRConfig(_Section):
    """Configuration for the Tesseract OCR engine."""

    tesseract_cmd: str | None = None
    lang: str = "spa"
    psm: int = 3
    char_whitelist: str = DEFAULT_CHAR_WHITELIST
    preserve_interword_spaces: bool = True


class CompanyAlias(_Section):
    """A known supplier company and the spellings that identify it."""

    name: str
    variants: list[str] = Field(default_factory=list)


def _default_companies() -> list[CompanyAlias]:
    return [CompanyAlias(name="Oleoflores", variants=["OLEOFLORES"])]


class ExtractionConfig(_Section):
    """Configuration for receipt field extraction."""

    companies: list[CompanyAlias] = Field(default_factory=_default_companies)
    guide_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_GUIDE_KEYWORDS)
    )
    guide_window: int = Field(default=150, gt=0)


class AppConfig(_Section):
    """Top-level application configuration."""

    conditioning: ConditioningConfig = Field(default_factory=ConditioningConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    catalog_path: str | None = None
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
