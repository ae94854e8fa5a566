"""
Simple encryption utilities for provider token storage.

Handles cross-database encryption (PostgreSQL pgcrypto, SQLite plaintext for testing).
"""

from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session


def _key_for(user_id: str, key_suffix: str, secret: Optional[str]) -> str:
    parts = [p for p in (secret, user_id, key_suffix) if p]
    return "_".join(parts)


def encrypt_value(
    session: Session,
    value: Optional[str],
    user_id: str,
    key_suffix: str = "",
    secret: Optional[str] = None,
) -> Optional[bytes]:
    """
    Encrypt a value using database-specific encryption.

    Args:
        session: Database session
        value: Value to encrypt
        user_id: Internal user id, used for key isolation
        key_suffix: Additional key suffix for different token kinds
        secret: Deployment secret mixed into the key

    Returns:
        Encrypted bytes, or None when value is None
    """
    if value is None:
        return None

    if session.bind.dialect.name == "postgresql":
        result = session.execute(
            text("SELECT pgp_sym_encrypt(:data, :key)"),
            {"data": value, "key": _key_for(user_id, key_suffix, secret)},
        ).scalar()
        return result

    # SQLite for testing - return as-is
    return value.encode() if isinstance(value, str) else value


def decrypt_value(
    session: Session,
    encrypted_value: Optional[bytes],
    user_id: str,
    key_suffix: str = "",
    secret: Optional[str] = None,
) -> Optional[str]:
    """
    Decrypt a value using database-specific decryption.

    Args:
        session: Database session
        encrypted_value: Encrypted bytes
        user_id: Internal user id, used for key isolation
        key_suffix: Additional key suffix for different token kinds
        secret: Deployment secret mixed into the key

    Returns:
        Decrypted string or None
    """
    if encrypted_value is None:
        return None

    if session.bind.dialect.name == "postgresql":
        result = session.execute(
            text("SELECT pgp_sym_decrypt(:data, :key)"),
            {"data": encrypted_value, "key": _key_for(user_id, key_suffix, secret)},
        ).scalar()
        return result

    if isinstance(encrypted_value, bytes):
        return encrypted_value.decode()
    return encrypted_value


def encrypt_token(
    session: Session, token: Optional[str], user_id: str, token_kind: str, secret: Optional[str] = None
) -> Optional[bytes]:
    """Encrypt a provider token with user and token-kind isolation."""
    return encrypt_value(session, token, user_id, f"token_{token_kind}", secret)


def decrypt_token(
    session: Session,
    encrypted: Optional[bytes],
    user_id: str,
    token_kind: str,
    secret: Optional[str] = None,
) -> Optional[str]:
    """Decrypt a provider token."""
    return decrypt_value(session, encrypted, user_id, f"token_{token_kind}", secret)
