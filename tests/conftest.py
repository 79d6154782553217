"""Shared pytest fixtures for finledger tests."""

import logging
import tempfile
import os
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal
from pathlib import Path
import pytest

from finledger.database.factories import create_encrypted_store, create_sqlite_store
from finledger.domain.account import AccountService
from finledger.domain.entities import Account, Category, HistoryEntry, HistorySource
from finledger.domain.ledger import LedgerService
from finledger.domain.screenshot import ScreenshotImportService
from finledger.domain.summary import SummaryService
from finledger.ocr import OCREngine

FIXTURES_DIR = Path(__file__).parent / "fixtures"
SAMPLE_SCREENSHOT_TEXT = (FIXTURES_DIR / "sample_screenshot.txt").read_text(encoding="utf-8")


class FakeOCREngine(OCREngine):
    """OCR engine returning canned text, recording the images it was given."""

    def __init__(self, text: str = SAMPLE_SCREENSHOT_TEXT):
        self.text = text
        self.calls: list[Path] = []

    def extract_text(self, image_path) -> str:
        self.calls.append(Path(image_path))
        return self.text


def make_account(
    name: str,
    balance: str = "100",
    category: Category = Category.CASH,
    updated_at: datetime | None = None,
    history_date: date | None = None,
    account_id: str | None = None,
    previous_names: tuple[str, ...] = (),
) -> Account:
    """Build an Account entity directly, bypassing any service."""
    stamp = updated_at or datetime(2024, 1, 1, tzinfo=UTC)
    return Account(
        id=account_id or f"id-{name.lower().replace(' ', '-')}",
        name=name,
        category=category,
        balance=Decimal(balance),
        created_at=stamp,
        updated_at=stamp,
        previous_names=previous_names,
        history=(
            HistoryEntry(history_date or date(2024, 1, 1), Decimal(balance), HistorySource.MANUAL),
        ),
    )


@pytest.fixture
def temp_db():
    """Create a temporary SQLite store for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_store(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    db.session_factory.kw["bind"].dispose()
    for path in (db_path, db_path + ".lock"):
        if os.path.exists(path):
            os.unlink(path)


@pytest.fixture
def encrypted_store(tmp_path):
    """Create a temporary encrypted file store for testing."""
    store = create_encrypted_store(
        data_path=str(tmp_path / "finance_data"), key_path=str(tmp_path / ".finance_key")
    )
    store.connect()
    store.initialize_schema()
    return store


@pytest.fixture(params=["sqlite", "encrypted"])
def any_store(request, temp_db, encrypted_store):
    """Run a test once against each storage backend."""
    if request.param == "sqlite":
        return temp_db
    return encrypted_store


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def ledger_service(temp_db):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db)


@pytest.fixture
def summary_service(temp_db):
    """Create a SummaryService with a temporary database."""
    return SummaryService(temp_db)


@pytest.fixture
def fake_ocr():
    """OCR engine returning the sample screenshot text."""
    return FakeOCREngine()


@pytest.fixture
def screenshot_service(temp_db, fake_ocr):
    """Create a ScreenshotImportService with a fake OCR engine."""
    return ScreenshotImportService(temp_db, fake_ocr)


@pytest.fixture
def sample_image(tmp_path):
    """A file with an image extension; the fake OCR never opens it."""
    path = tmp_path / "accounts.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n")
    return path


@pytest.fixture
def yesterday():
    return date.today() - timedelta(days=1)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_text():
    """OCR text of a typical aggregator screenshot."""
    return SAMPLE_SCREENSHOT_TEXT


@pytest.fixture
def account_factory():
    """Return the make_account helper for building accounts in memory."""
    return make_account


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging() calls made by CLI invocations."""
    yield
    from finledger import logging_setup

    pkg_logger = logging.getLogger("finledger")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.propagate = True
    pkg_logger.setLevel(logging.NOTSET)
    logging_setup._CONFIGURED = False
