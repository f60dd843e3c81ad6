"""
Key material and its ASCII-safe encoding.

Encoded key strings are lowercase hex of::

    version_tag(4) || payload || SHA-256(version_tag || payload)

The version tag tells a plain Key (payload = 32 raw bytes) apart from a
PasswordProtectedKey (payload = a password-sealed container holding the raw
key), so loading a protected key as a plain one fails with BadFormatError and
nothing else.
"""
from __future__ import annotations

import binascii
import hmac
import io
import logging
import os

from encutil.crypto.cipher import open_with_password, seal_with_password
from encutil.crypto.exceptions import BadFormatError, WrongKeyOrTamperedError
from encutil.crypto.hash import sha256_bytes
from encutil.utils.dataModels import (
    CHECKSUM_SIZE,
    KEY_SIZE,
    KEY_VERSION_TAG,
    PROTECTED_KEY_VERSION_TAG,
    KdfParams,
)
from encutil.utils.helper import wipe

logger = logging.getLogger(__name__)

TAG_LEN = len(KEY_VERSION_TAG)


def _encode(tag: bytes, payload: bytes | bytearray) -> str:
    data = tag + bytes(payload)
    return binascii.hexlify(data + sha256_bytes(data)).decode("ascii")


def _decode(text: str, tag: bytes) -> bytes:
    try:
        data = binascii.unhexlify(text.strip())
    except (ValueError, TypeError):
        raise BadFormatError("Encoded key is not valid hex") from None
    if len(data) < TAG_LEN + CHECKSUM_SIZE:
        raise BadFormatError("Encoded key is too short")
    if data[:TAG_LEN] != tag:
        raise BadFormatError("Encoded key has an unexpected version tag")
    body, checksum = data[:-CHECKSUM_SIZE], data[-CHECKSUM_SIZE:]
    if not hmac.compare_digest(sha256_bytes(body), checksum):
        raise BadFormatError("Encoded key checksum mismatch")
    return body[TAG_LEN:]


def _drain(stream: io.BytesIO) -> bytearray:
    """Copy a BytesIO's contents out and zero its internal buffer."""
    view = stream.getbuffer()
    try:
        out = bytearray(view)
        view[:] = bytes(len(view))
    finally:
        view.release()
    return out


class Key:
    """A 256-bit secret key. Use as a context manager to wipe it afterwards."""

    def __init__(self, raw: bytes | bytearray):
        if len(raw) != KEY_SIZE:
            raise BadFormatError(f"Key must be {KEY_SIZE} bytes, got {len(raw)}")
        self._raw = bytearray(raw)

    @classmethod
    def generate_random(cls) -> Key:
        buf = bytearray(os.urandom(KEY_SIZE))
        try:
            return cls(buf)
        finally:
            wipe(buf)

    @property
    def raw(self) -> bytearray:
        return self._raw

    def encode(self) -> str:
        return _encode(KEY_VERSION_TAG, self._raw)

    @classmethod
    def decode(cls, text: str) -> Key:
        payload = bytearray(_decode(text, KEY_VERSION_TAG))
        try:
            return cls(payload)
        finally:
            wipe(payload)

    def wipe(self) -> None:
        wipe(self._raw)

    def __enter__(self) -> Key:
        return self

    def __exit__(self, *exc) -> None:
        self.wipe()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Key):
            return NotImplemented
        return hmac.compare_digest(self._raw, other._raw)

    __hash__ = None

    def __repr__(self) -> str:
        return "Key(<redacted>)"


class PasswordProtectedKey:
    """A Key sealed under a password-derived key."""

    def __init__(self, container: bytes):
        self._container = bytes(container)

    @classmethod
    def wrap(cls, key: Key, password: bytes | bytearray, params: KdfParams | None = None) -> PasswordProtectedKey:
        dst = io.BytesIO()
        seal_with_password(io.BytesIO(key.raw), dst, password, params)
        return cls(dst.getvalue())

    @classmethod
    def create_from_password(cls, password: bytes | bytearray, params: KdfParams | None = None) -> PasswordProtectedKey:
        with Key.generate_random() as key:
            return cls.wrap(key, password, params)

    def unlock(self, password: bytes | bytearray) -> Key:
        dst = io.BytesIO()
        open_with_password(io.BytesIO(self._container), dst, password)
        raw = _drain(dst)
        try:
            if len(raw) != KEY_SIZE:
                raise WrongKeyOrTamperedError("Unlocked key has the wrong length")
            return Key(raw)
        finally:
            wipe(raw)

    def encode(self) -> str:
        return _encode(PROTECTED_KEY_VERSION_TAG, self._container)

    @classmethod
    def decode(cls, text: str) -> PasswordProtectedKey:
        return cls(_decode(text, PROTECTED_KEY_VERSION_TAG))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PasswordProtectedKey):
            return NotImplemented
        return self._container == other._container

    __hash__ = None


def decode_key_file(text: str) -> Key | PasswordProtectedKey:
    """Decode a key file's contents as either kind of key.

    Only BadFormatError from the plain decode leads to the protected decode;
    a second BadFormatError means the text is neither.
    """
    try:
        return Key.decode(text)
    except BadFormatError:
        logger.debug("Not a plain key, trying password-protected format")
    return PasswordProtectedKey.decode(text)
