"""Screenshot import domain service."""

import mimetypes
from datetime import date
from pathlib import Path
from typing import Optional

from finledger.database.base import AccountStore
from finledger.domain.errors import ValidationError, unsupported_image
from finledger.domain.ledger import ImportSummary, LedgerService
from finledger.domain.matching import MatchPolicy
from finledger.domain.parsing import ParsedScreenshot, parse_screenshot_text
from finledger.logging_setup import get_logger
from finledger.ocr import OCREngine

logger = get_logger("finledger.domain.screenshot")

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp")


def validate_image_file(path: str | Path) -> Path:
    """Check that an upload is an image we accept.

    Both the extension and the guessed MIME type must say image; SVG is
    not accepted.

    Returns:
        The path as a Path

    Raises:
        ValidationError: If the file is missing or not an accepted image
    """
    image_path = Path(path)
    if not image_path.is_file():
        raise ValidationError(unsupported_image(str(path), "file not found"))

    if image_path.suffix.lower() not in IMAGE_EXTENSIONS:
        raise ValidationError(
            unsupported_image(
                str(path), f"extension must be one of {', '.join(IMAGE_EXTENSIONS)}"
            )
        )

    mime_type, _ = mimetypes.guess_type(image_path.name)
    if mime_type is None and image_path.suffix.lower() == ".webp":
        # Older mimetypes tables lack webp
        mime_type = "image/webp"
    if not mime_type or not mime_type.startswith("image/"):
        raise ValidationError(unsupported_image(str(path), f"MIME type {mime_type} is not an image"))

    return image_path


class ScreenshotImportService:
    """Service for importing account balances from screenshots."""

    def __init__(
        self,
        store: AccountStore,
        ocr_engine: Optional[OCREngine] = None,
        policy: MatchPolicy = MatchPolicy(),
    ):
        """Initialize screenshot import service.

        Args:
            store: Account store instance
            ocr_engine: OCR engine; only needed for import_screenshot
            policy: Matching options
        """
        self.store = store
        self.ocr_engine = ocr_engine
        self.ledger_service = LedgerService(store, policy)

    def parse_text(self, raw_text: str) -> ParsedScreenshot:
        """Parse OCR text without touching the store."""
        return parse_screenshot_text(raw_text)

    def import_text(self, raw_text: str, effective_date: Optional[date] = None) -> ImportSummary:
        """Parse OCR text and apply the records to the ledger.

        Args:
            raw_text: Full text extracted from one screenshot
            effective_date: As-of date of the balances (defaults to today)

        Returns:
            ImportSummary; empty when no account lines were found

        Raises:
            ValidationError: If effective_date is in the future
        """
        parsed = self.parse_text(raw_text)
        if not parsed.records:
            logger.warning("No accounts detected in %d line(s) of text", parsed.lines_read)
        return self.ledger_service.import_records(parsed.records, effective_date)

    def import_screenshot(
        self, image_path: str | Path, effective_date: Optional[date] = None
    ) -> ImportSummary:
        """Run OCR on a screenshot and import the accounts it shows.

        Raises:
            ValidationError: If the file is not an accepted image or the date is in the future
        """
        if self.ocr_engine is None:
            raise ValidationError("No OCR engine configured")
        path = validate_image_file(image_path)
        logger.info("Running OCR on %s", path)
        raw_text = self.ocr_engine.extract_text(path)
        return self.import_text(raw_text, effective_date)
