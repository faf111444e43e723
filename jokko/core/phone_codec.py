# jokko/core/phone_codec.py
"""
Phone envelope codec for provider contact numbers.

Envelope layout (stored in a text column):

    "\\x" + hex( nonce[12] || tag[16] || ciphertext )

AES-256-GCM with a 32-byte key supplied as 64 hex characters
(ENCRYPTION_KEY_HEX). Older rows hold plain hex of the UTF-8 phone number,
with or without the "\\x" prefix; decode_phone() still reads those.

decode_phone() never raises: anything it cannot recover becomes None and
callers show an empty phone field.
"""
import hashlib
import logging
import os
import re

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)

NONCE_SIZE = 12
TAG_SIZE = 16
KEY_HEX_LENGTH = 64

# Postgres bytea text escape
BYTEA_PREFIX = "\\x"

DEFAULT_HASH_SALT = "jokko-default-salt"

_PHONE_SHAPE = re.compile(r"^\+?[0-9]{6,}$")


class InvalidKeyError(ValueError):
    """Raised when the configured key is not 64 hex characters."""


def load_key(key_hex: str | None) -> bytes | None:
    """
    Return the raw AES key, or None when no usable key is configured.
    """
    if not key_hex or len(key_hex) != KEY_HEX_LENGTH:
        return None
    try:
        return bytes.fromhex(key_hex)
    except ValueError:
        return None


def looks_like_phone(value: str) -> bool:
    return bool(_PHONE_SHAPE.match(re.sub(r"\s", "", value)))


def encode_phone(phone: str, key_hex: str | None) -> str:
    """
    Encrypt `phone` into a "\\x"-prefixed hex envelope.

    A fresh random nonce is drawn on every call.

    Raises:
        InvalidKeyError: if key_hex is missing or malformed.
    """
    key = load_key(key_hex)
    if key is None:
        raise InvalidKeyError("ENCRYPTION_KEY_HEX must be 64 hex characters")

    nonce = os.urandom(NONCE_SIZE)
    # AESGCM appends the tag to the ciphertext; the envelope stores it first.
    sealed = AESGCM(key).encrypt(nonce, phone.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    return BYTEA_PREFIX + (nonce + tag + ciphertext).hex()


def _envelope_to_bytes(value: str | bytes | memoryview | None) -> bytes | None:
    if not value:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    hex_part = value[len(BYTEA_PREFIX):] if value.startswith(BYTEA_PREFIX) else value
    try:
        return bytes.fromhex(hex_part)
    except ValueError:
        return None


def _decrypt(raw: bytes, key: bytes) -> str | None:
    if len(raw) < NONCE_SIZE + TAG_SIZE:
        return None
    nonce = raw[:NONCE_SIZE]
    tag = raw[NONCE_SIZE:NONCE_SIZE + TAG_SIZE]
    ciphertext = raw[NONCE_SIZE + TAG_SIZE:]
    try:
        plaintext = AESGCM(key).decrypt(nonce, ciphertext + tag, None)
        return plaintext.decode("utf-8")
    except (InvalidTag, UnicodeDecodeError, ValueError):
        return None


def decode_phone(value: str | bytes | memoryview | None, key_hex: str | None) -> str | None:
    """
    Recover a phone number from a stored envelope.

    Order:
      1. AES-GCM with the configured key (result must look like a phone).
      2. Plain UTF-8 stored as hex (historical unencrypted rows), accepted
         only if it looks like a phone.

    Returns:
        The phone string, or None if neither path yields a phone.
    """
    raw = _envelope_to_bytes(value)
    if raw is None:
        return None

    key = load_key(key_hex)
    if key is not None:
        phone = _decrypt(raw, key)
        if phone is not None and looks_like_phone(phone):
            return phone

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        return None
    if looks_like_phone(text):
        return text

    logger.debug("Phone envelope could not be decoded (%d bytes)", len(raw))
    return None


def hash_phone(phone: str, key_hex: str | None) -> str:
    """
    Deterministic SHA-256 of (key or default salt) + phone, for dedupe.
    """
    digest = hashlib.sha256()
    digest.update((key_hex or DEFAULT_HASH_SALT).encode("utf-8"))
    digest.update(phone.encode("utf-8"))
    return digest.hexdigest()
