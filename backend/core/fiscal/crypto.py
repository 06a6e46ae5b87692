from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken
from django.conf import settings


class CredentialCryptoError(RuntimeError):
    """Raised when a stored gateway credential cannot be decrypted."""


_fernet: Fernet | None = None
_fernet_key: bytes | None = None


def _get_fernet_key() -> bytes:
    configured = (getattr(settings, "FISCAL_TOKEN_ENCRYPTION_KEY", "") or "").strip()
    if configured:
        return configured.encode("utf-8")

    # Local/dev fallback: derive from SECRET_KEY. Rotating SECRET_KEY makes
    # previously stored credentials undecryptable.
    digest = hashlib.sha256(settings.SECRET_KEY.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


def _get_fernet() -> Fernet:
    global _fernet, _fernet_key
    key = _get_fernet_key()
    if _fernet is None or key != _fernet_key:
        _fernet = Fernet(key)
        _fernet_key = key
    return _fernet


def encrypt_credential(credential: str) -> str:
    if not credential:
        return ""
    value = _get_fernet().encrypt(credential.encode("utf-8"))
    return value.decode("utf-8")


def decrypt_credential(encrypted: str) -> str:
    if not encrypted:
        return ""
    try:
        value = _get_fernet().decrypt(encrypted.encode("utf-8"))
        return value.decode("utf-8")
    except InvalidToken as exc:
        raise CredentialCryptoError("Stored gateway credential cannot be decrypted.") from exc
