"""Services package - OCR, style analysis, text removal and session orchestration."""

from .ocr_service import BaseOCREngine, TesseractOCREngine
from .style_service import StyleAnalyzer, ColorEstimate, EmptySampleError
from .removal_service import TextRemovalClient, RemovalCoordinator
from .editing_session import EditingSession, CancellationToken

__all__ = [
    'BaseOCREngine',
    'TesseractOCREngine',
    'StyleAnalyzer',
    'ColorEstimate',
    'EmptySampleError',
    'TextRemovalClient',
    'RemovalCoordinator',
    'EditingSession',
    'CancellationToken',
]
