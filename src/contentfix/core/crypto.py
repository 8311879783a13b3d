"""Fernet encryption for stored secrets and backup payloads."""

from __future__ import annotations

from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken


def get_or_create_key(contentfix_dir: Path) -> bytes:
    """Get existing Fernet key or create a new one."""
    key_file = contentfix_dir / "key"
    if key_file.exists():
        return key_file.read_bytes().strip()

    key = Fernet.generate_key()
    contentfix_dir.mkdir(parents=True, exist_ok=True)
    key_file.write_bytes(key)
    key_file.chmod(0o600)
    return key


def get_fernet(contentfix_dir: Path) -> Fernet:
    key = get_or_create_key(contentfix_dir)
    return Fernet(key)


def encrypt_text(text: str, contentfix_dir: Path) -> bytes:
    """Encrypt a UTF-8 string with the project key."""
    return get_fernet(contentfix_dir).encrypt(text.encode("utf-8"))


def decrypt_text(token: bytes, contentfix_dir: Path) -> str:
    """Decrypt a token produced by :func:`encrypt_text`.

    Raises ``ValueError`` when the key does not match, which usually means
    the ``.contentfix/key`` file was replaced after the data was written.
    """
    try:
        return get_fernet(contentfix_dir).decrypt(token).decode("utf-8")
    except InvalidToken as exc:
        raise ValueError("Stored data cannot be decrypted with the current key") from exc
