"""Fernet-based encryption for record collections at rest.

Each stored collection (all glucose readings, all meals, ...) is serialized
to JSON and encrypted as a single token before it is written to SQLite.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when encryption/decryption fails."""


class BlobEncryptor:
    """Encrypts and decrypts JSON-serializable collections with Fernet.

    Usage::

        encryptor = BlobEncryptor(key="...")
        token = encryptor.encrypt([{"id": "1", "glucose": 110}])
        encryptor.decrypt(token)  # [{"id": "1", "glucose": 110}]
    """

    def __init__(self, key: str) -> None:
        """Initialize with a Fernet key.

        Args:
            key: A valid Fernet key string. Generate with
                 :meth:`generate_key`.

        Raises:
            EncryptionError: If the key is empty or invalid.
        """
        if not key or not key.strip():
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = Fernet(key.encode() if isinstance(key, str) else key)
        except (ValueError, TypeError) as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc

    def encrypt(self, data: Any) -> str:
        """Encrypt a JSON-serializable value to a Fernet token string.

        Returns an empty string for ``None``.

        Raises:
            EncryptionError: If serialization or encryption fails.
        """
        if data is None:
            return ""
        try:
            plaintext = json.dumps(data, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"Encryption failed: {exc}") from exc
        return self._fernet.encrypt(plaintext).decode("utf-8")

    def decrypt(self, token: str) -> Any:
        """Decrypt a Fernet token string back to a Python object.

        Returns ``None`` for an empty token.

        Raises:
            EncryptionError: If the token is invalid or decryption fails.
        """
        if not token:
            return None
        try:
            plaintext = self._fernet.decrypt(token.encode("utf-8"))
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc
        try:
            return json.loads(plaintext)
        except ValueError as exc:
            raise EncryptionError(f"Decryption failed: {exc}") from exc

    @staticmethod
    def generate_key() -> str:
        """Generate a new Fernet key (URL-safe base64, 32 bytes)."""
        return Fernet.generate_key().decode("utf-8")
