"""Domain layer for finledger application."""

# Services are imported lazily: the storage layer imports domain.entities,
# and the services import the storage layer.
_SERVICES = {
    "AccountService": "finledger.domain.account",
    "LedgerService": "finledger.domain.ledger",
    "ScreenshotImportService": "finledger.domain.screenshot",
    "SummaryService": "finledger.domain.summary",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
