"""OCR engines that turn a screenshot into text."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import pytesseract
from PIL import Image

from finledger.logging_setup import get_logger

logger = get_logger("finledger.ocr")


class OCREngine(ABC):
    """Abstract OCR engine."""

    @abstractmethod
    def extract_text(self, image_path: str | Path) -> str:
        """Return all text found in the image, one line per text line."""
        pass


class TesseractOCREngine(OCREngine):
    """OCR through the Tesseract binary via pytesseract."""

    def __init__(self, lang: str = "eng", config: str = "--psm 6", tesseract_cmd: Optional[str] = None):
        """Initialize Tesseract engine.

        Args:
            lang: Tesseract language code
            config: Extra Tesseract options; page segmentation mode 6 reads
                the screenshot as one uniform block, which keeps each account
                name on the same line as its balance
            tesseract_cmd: Path to the tesseract binary if not on PATH
        """
        self.lang = lang
        self.config = config
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def extract_text(self, image_path: str | Path) -> str:
        with Image.open(image_path) as img:
            # Screenshots are often RGBA or palette PNGs
            text = pytesseract.image_to_string(img.convert("RGB"), lang=self.lang, config=self.config)
        logger.debug("Extracted %d characters from %s", len(text), image_path)
        return text
