"""
Configuration management using Pydantic Settings.

Environment variables (prefix PHOTOTEXT_):
- PHOTOTEXT_REMOVAL_SERVICE_URL: Base URL of the text-removal service
- PHOTOTEXT_REMOVAL_HEALTH_TIMEOUT: Seconds allowed for a health probe
- PHOTOTEXT_REMOVAL_REQUEST_TIMEOUT: Seconds allowed for a removal call
- PHOTOTEXT_AUTO_REMOVE: Run removal right after detection
- PHOTOTEXT_OCR_LANG: Tesseract language pack(s)
- PHOTOTEXT_GROUPING_* / PHOTOTEXT_STYLE_*: Heuristic thresholds
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.constants import GroupingThresholds, StyleThresholds


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PHOTOTEXT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Removal service
    removal_service_url: str = Field(default="http://localhost:5050")
    removal_health_timeout: float = Field(default=5.0, gt=0)
    removal_request_timeout: float = Field(default=60.0, gt=0)
    removal_check_health_first: bool = Field(default=True)
    auto_remove: bool = Field(default=False)

    # OCR
    ocr_lang: str = Field(default="eng")
    ocr_psm: int = Field(default=3)
    ocr_oem: int = Field(default=3)
    ocr_max_image_size: int = Field(default=2048, gt=0)

    # Geometry
    bbox_padding_percent: float = Field(default=0.5, ge=0)

    # Word grouping
    grouping_min_confidence: float = Field(default=50.0)
    grouping_line_sort_tolerance: float = Field(default=2.0)
    grouping_same_line_ratio: float = Field(default=0.4)
    grouping_same_line_floor: float = Field(default=1.5)
    grouping_height_ratio: float = Field(default=0.6)
    grouping_proximity_ratio: float = Field(default=1.5)
    grouping_max_confidence_gap: float = Field(default=40.0)
    grouping_min_region_size: float = Field(default=0.1)

    # Style analysis
    style_font_size_ratio: float = Field(default=0.85)
    style_min_font_size: int = Field(default=10)
    style_sample_step: int = Field(default=2, ge=1)
    style_min_alpha: int = Field(default=200)
    style_min_contrast: float = Field(default=3.0)
    style_stroke_contrast: float = Field(default=4.0)

    def get_grouping_thresholds(self) -> GroupingThresholds:
        """Get grouping thresholds as an injectable structure."""
        return GroupingThresholds(
            min_confidence=self.grouping_min_confidence,
            line_sort_tolerance=self.grouping_line_sort_tolerance,
            same_line_ratio=self.grouping_same_line_ratio,
            same_line_floor=self.grouping_same_line_floor,
            height_ratio=self.grouping_height_ratio,
            proximity_ratio=self.grouping_proximity_ratio,
            max_confidence_gap=self.grouping_max_confidence_gap,
            min_region_size=self.grouping_min_region_size,
        )

    def get_style_thresholds(self) -> StyleThresholds:
        """Get style thresholds; bands not exposed here keep their defaults."""
        return StyleThresholds(
            font_size_ratio=self.style_font_size_ratio,
            min_font_size=self.style_min_font_size,
            sample_step=self.style_sample_step,
            min_alpha=self.style_min_alpha,
            min_contrast=self.style_min_contrast,
            stroke_contrast=self.style_stroke_contrast,
        )

    def get_ocr_config(self) -> dict:
        """Get OCR engine configuration as dictionary."""
        return {
            'lang': self.ocr_lang,
            'psm': self.ocr_psm,
            'oem': self.ocr_oem,
        }


# Global settings instance
settings = Settings()
