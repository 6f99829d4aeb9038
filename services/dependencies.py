"""
Service factories wired from application settings.
"""
from typing import Optional

from config.settings import Settings, settings as default_settings

from .editing_session import EditingSession
from .ocr_service import BaseOCREngine, TesseractOCREngine
from .removal_service import RemovalCoordinator, TextRemovalClient
from .style_service import StyleAnalyzer


def get_ocr_engine(settings: Settings = default_settings) -> TesseractOCREngine:
    """
    Build the OCR engine.

    Returns:
        TesseractOCREngine configured from settings
    """
    return TesseractOCREngine(**settings.get_ocr_config())


def get_style_analyzer(settings: Settings = default_settings) -> StyleAnalyzer:
    return StyleAnalyzer(settings.get_style_thresholds())


def get_removal_coordinator(
    settings: Settings = default_settings,
    base_url: Optional[str] = None
) -> RemovalCoordinator:
    """
    Build the removal coordinator.

    Args:
        settings: Application settings
        base_url: Override for the service URL

    Returns:
        RemovalCoordinator with its own HTTP client
    """
    client = TextRemovalClient(
        base_url=base_url or settings.removal_service_url,
        timeout=settings.removal_request_timeout
    )
    return RemovalCoordinator(
        client=client,
        request_timeout=settings.removal_request_timeout,
        health_timeout=settings.removal_health_timeout,
        check_health_first=settings.removal_check_health_first
    )


def get_editing_session(
    settings: Settings = default_settings,
    ocr_engine: Optional[BaseOCREngine] = None,
    coordinator: Optional[RemovalCoordinator] = None
) -> EditingSession:
    """
    Build an editing session.

    Args:
        settings: Application settings
        ocr_engine: Engine override (Tesseract if omitted)
        coordinator: Coordinator override (built from settings if omitted)

    Returns:
        EditingSession
    """
    return EditingSession(
        ocr_engine=ocr_engine or get_ocr_engine(settings),
        analyzer=get_style_analyzer(settings),
        coordinator=coordinator or get_removal_coordinator(settings),
        grouping_thresholds=settings.get_grouping_thresholds(),
        padding=settings.bbox_padding_percent,
        auto_remove=settings.auto_remove,
        max_image_size=settings.ocr_max_image_size
    )
