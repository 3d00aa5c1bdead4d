"""Symmetric encryption for sensitive settings fields.

AES-256-GCM with a key derived once from the operator secret via scrypt.
Tokens are ``iv:tag:ciphertext``, each segment lowercase hex, with a fresh
16-byte IV per call.
"""

import hashlib
import hmac
import os
import re
import secrets
from collections.abc import Iterable
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from app.utils.dicts import transform_paths

_BLOCK_HEX = re.compile(r"^[0-9a-f]{32}$")
_CIPHERTEXT_HEX = re.compile(r"^(?:[0-9a-f]{2})*$")


class EncryptionKeyMissingError(RuntimeError):
    """Raised at construction when no encryption secret is configured."""


class DecryptionError(Exception):
    """Raised when a token is malformed or fails authentication."""


class EncryptionService:
    """Encrypts, decrypts and hashes secrets."""

    IV_LENGTH = 16
    TAG_LENGTH = 16
    KEY_LENGTH = 32

    def __init__(self, secret: str | None, salt: str = "whatscrm-settings-salt"):
        if not secret:
            raise EncryptionKeyMissingError("ENCRYPTION_KEY environment variable is required")
        kdf = Scrypt(salt=salt.encode("utf-8"), length=self.KEY_LENGTH, n=2**14, r=8, p=1)
        self._cipher = AESGCM(kdf.derive(secret.encode("utf-8")))

    def encrypt(self, plaintext: str) -> str:
        iv = os.urandom(self.IV_LENGTH)
        sealed = self._cipher.encrypt(iv, plaintext.encode("utf-8"), None)
        # cryptography appends the tag to the ciphertext
        ciphertext, tag = sealed[: -self.TAG_LENGTH], sealed[-self.TAG_LENGTH :]
        return f"{iv.hex()}:{tag.hex()}:{ciphertext.hex()}"

    def decrypt(self, token: str) -> str:
        parts = token.split(":")
        if len(parts) != 3:
            raise DecryptionError("Invalid encrypted token format")

        iv_hex, tag_hex, ciphertext_hex = parts
        if not (
            _BLOCK_HEX.match(iv_hex)
            and _BLOCK_HEX.match(tag_hex)
            and _CIPHERTEXT_HEX.match(ciphertext_hex)
        ):
            raise DecryptionError("Malformed encrypted token")

        try:
            plaintext = self._cipher.decrypt(
                bytes.fromhex(iv_hex),
                bytes.fromhex(ciphertext_hex) + bytes.fromhex(tag_hex),
                None,
            )
        except InvalidTag as exc:
            raise DecryptionError("Encrypted token failed authentication") from exc

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecryptionError("Decrypted value is not valid UTF-8") from exc

    @staticmethod
    def hash(text: str) -> str:
        """SHA-256 hex digest (64 characters)."""
        return hashlib.sha256(text.encode("utf-8")).hexdigest()

    def compare_hash(self, text: str, digest: str) -> bool:
        return hmac.compare_digest(self.hash(text).encode(), digest.encode())

    @staticmethod
    def generate_token(byte_length: int = 32) -> str:
        return secrets.token_hex(byte_length)

    # ------------------------------------------------------------------
    # Settings documents
    # ------------------------------------------------------------------

    def encrypt_fields(self, value: dict[str, Any], paths: Iterable[str]) -> dict[str, Any]:
        """Copy of *value* with the secrets at the dotted *paths* encrypted."""
        return transform_paths(value, paths, lambda v: self.encrypt(str(v)))

    def decrypt_fields(self, value: dict[str, Any], paths: Iterable[str]) -> dict[str, Any]:
        """Inverse of :meth:`encrypt_fields`; tampered tokens raise :class:`DecryptionError`."""
        return transform_paths(value, paths, lambda v: self.decrypt(str(v)))
