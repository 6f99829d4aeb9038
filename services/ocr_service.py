"""
OCR Service - Adapters that turn an image into recognized words.

The recognition algorithm is a black box; this module only maps an engine's
output to OCRWord values in source-image pixel coordinates.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

import pytesseract
from loguru import logger
from PIL import Image

from core.exceptions import OCRError
from core.models import OCRWord


class BaseOCREngine(ABC):
    """
    Abstract base class for OCR engines.

    Implementations must return one OCRWord per recognized word with its
    pixel box and a 0-100 confidence.
    """

    @abstractmethod
    def recognize(self, image: Image.Image) -> List[OCRWord]:
        """
        Recognize words in an image.

        Args:
            image: PIL Image

        Returns:
            List of OCRWord in source pixel coordinates

        Raises:
            OCRError: If recognition fails
        """
        pass


class TesseractOCREngine(BaseOCREngine):
    """OCR engine backed by Tesseract via pytesseract."""

    def __init__(
        self,
        lang: str = "eng",
        psm: int = 3,
        oem: int = 3,
        tesseract_cmd: Optional[str] = None
    ):
        """
        Initialize the Tesseract engine.

        Args:
            lang: Tesseract language pack(s), e.g. 'eng' or 'eng+deu'
            psm: Page segmentation mode (3 = fully automatic)
            oem: OCR engine mode (3 = default)
            tesseract_cmd: Optional path to the tesseract binary
        """
        self.lang = lang
        self.psm = psm
        self.oem = oem
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    @property
    def config(self) -> str:
        return f"--oem {self.oem} --psm {self.psm}"

    def recognize(self, image: Image.Image) -> List[OCRWord]:
        if image.mode not in ('RGB', 'L'):
            image = image.convert('RGB')

        try:
            data = pytesseract.image_to_data(
                image,
                lang=self.lang,
                config=self.config,
                output_type=pytesseract.Output.DICT
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
            raise OCRError(f"Tesseract failed: {e}") from e

        words = []
        for i in range(len(data['text'])):
            text = str(data['text'][i]).strip()
            if not text:
                continue

            try:
                conf = float(data['conf'][i])
            except (TypeError, ValueError):
                continue
            # -1 marks layout rows (blocks, lines) rather than words
            if conf < 0:
                continue

            x, y = data['left'][i], data['top'][i]
            w, h = data['width'][i], data['height'][i]
            words.append(OCRWord(
                text=text,
                x0=float(x),
                y0=float(y),
                x1=float(x + w),
                y1=float(y + h),
                confidence=conf
            ))

        logger.info(f"Tesseract recognized {len(words)} words")
        return words
