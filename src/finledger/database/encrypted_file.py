"""Encrypted JSON file account store.

The whole ledger is one JSON document, encrypted with AES-256-GCM and written
as three hex fields separated by colons:

    <iv>:<auth tag>:<ciphertext>

with a 16-byte IV and a 16-byte tag. The 32-byte key lives hex-encoded in a
separate key file, created with mode 0600 the first time it is needed.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional, Sequence

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from finledger.database.base import AccountStore
from finledger.database.mappers import (
    account_from_dict,
    account_to_dict,
    audit_entry_from_dict,
    audit_entry_to_dict,
)
from finledger.domain.entities import Account, AuditEntry
from finledger.domain.errors import StorageError
from finledger.logging_setup import get_logger

logger = get_logger("finledger.database.encrypted_file")

KEY_LENGTH = 32  # 256 bits
IV_LENGTH = 16
AUTH_TAG_LENGTH = 16
FORMAT_VERSION = 1


def generate_key() -> bytes:
    return AESGCM.generate_key(bit_length=KEY_LENGTH * 8)


def encrypt_text(plaintext: str, key: bytes) -> str:
    """Encrypt text into the ``iv:tag:ciphertext`` hex format."""
    iv = os.urandom(IV_LENGTH)
    sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    ciphertext, tag = sealed[:-AUTH_TAG_LENGTH], sealed[-AUTH_TAG_LENGTH:]
    return f"{iv.hex()}:{tag.hex()}:{ciphertext.hex()}"


def decrypt_text(payload: str, key: bytes) -> str:
    """Decrypt a value produced by :func:`encrypt_text`.

    Raises:
        StorageError: If the payload is malformed or fails authentication
    """
    parts = payload.strip().split(":")
    if len(parts) != 3:
        raise StorageError("Invalid encrypted data format")
    try:
        iv, tag, ciphertext = (bytes.fromhex(part) for part in parts)
    except ValueError as e:
        raise StorageError(f"Invalid encrypted data format: {e}") from e
    if len(iv) != IV_LENGTH or len(tag) != AUTH_TAG_LENGTH:
        raise StorageError("Invalid encrypted data format")
    try:
        plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, None)
    except InvalidTag as e:
        raise StorageError("Decryption failed: wrong key or corrupted data") from e
    return plaintext.decode("utf-8")


def _write_private(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(content)


class EncryptedFileAccountStore(AccountStore):
    """AccountStore keeping all accounts in one encrypted JSON file."""

    def __init__(self, data_path: str | Path, key_path: str | Path):
        """Initialize encrypted file store.

        Args:
            data_path: Path of the encrypted ledger file
            key_path: Path of the hex-encoded key file
        """
        self.data_path = Path(data_path).expanduser()
        self.key_path = Path(key_path).expanduser()

    @property
    def identity(self) -> str:
        return str(self.data_path.resolve())

    @property
    def lock_path(self) -> Optional[Path]:
        resolved = self.data_path.resolve()
        return resolved.with_name(resolved.name + ".lock")

    def connect(self) -> None:
        """Make sure the encryption key exists."""
        self._ensure_key()

    def disconnect(self) -> None:
        """Nothing to release; files are opened per operation."""
        pass

    def initialize_schema(self) -> None:
        """Create an empty ledger file if none exists."""
        if not self.data_path.exists():
            self.save_accounts([])
            logger.info("Created empty ledger file %s", self.data_path)

    def _ensure_key(self) -> bytes:
        if not self.key_path.exists():
            _write_private(self.key_path, generate_key().hex())
            logger.info("Generated new encryption key at %s", self.key_path)
        return self._read_key()

    def _read_key(self) -> bytes:
        try:
            key = bytes.fromhex(self.key_path.read_text(encoding="utf-8").strip())
        except (OSError, ValueError) as e:
            logger.error("Could not read encryption key %s: %s", self.key_path, e)
            raise StorageError(f"Could not read encryption key: {e}") from e
        if len(key) != KEY_LENGTH:
            raise StorageError(f"Encryption key must be {KEY_LENGTH} bytes, got {len(key)}")
        return key

    def _read_document(self) -> dict[str, Any]:
        """Decrypt the ledger document. A missing file is an empty ledger."""
        if not self.data_path.exists():
            return {"version": FORMAT_VERSION, "accounts": [], "audit": []}
        key = self._read_key()
        try:
            return json.loads(decrypt_text(self.data_path.read_text(encoding="utf-8"), key))
        except StorageError:
            logger.error("Could not decrypt ledger file %s", self.data_path)
            raise
        except json.JSONDecodeError as e:
            raise StorageError(f"Ledger file is not valid JSON: {e}") from e

    def load_accounts(self) -> list[Account]:
        """Decrypt and load all accounts."""
        return [account_from_dict(data) for data in self._read_document().get("accounts", [])]

    def load_audit_log(self) -> list[AuditEntry]:
        """Decrypt and load the audit log, oldest entry first."""
        return [audit_entry_from_dict(data) for data in self._read_document().get("audit", [])]

    def save_accounts(self, accounts: Sequence[Account], audit: Sequence[AuditEntry] = ()) -> None:
        """Encrypt and write all accounts, replacing the file atomically.

        The audit log already in the file is carried over, with ``audit``
        appended to it.
        """
        key = self._ensure_key()
        previous_audit = self._read_document().get("audit", [])
        document = {
            "version": FORMAT_VERSION,
            "accounts": [account_to_dict(acc) for acc in accounts],
            "audit": previous_audit + [audit_entry_to_dict(entry) for entry in audit],
        }
        payload = encrypt_text(json.dumps(document, indent=2), key)
        tmp_path = self.data_path.with_name(self.data_path.name + ".tmp")
        try:
            _write_private(tmp_path, payload)
            os.replace(tmp_path, self.data_path)
        except OSError as e:
            logger.error("Failed to write ledger file %s: %s", self.data_path, e)
            raise StorageError(f"Could not save accounts: {e}") from e
