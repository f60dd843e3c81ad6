"""
Streaming authenticated encryption of byte streams (files).

A container is a fixed header followed by AES-256-GCM chunks. Every chunk
authenticates the full header and its own index, and an empty final chunk
marks the end of the stream, so that header edits, chunk reordering,
truncation and appended data all fail the same way as a wrong key.

Sealing never fails except on I/O errors raised by the streams themselves.
Opening raises WrongKeyOrTamperedError for every authentication or structure
problem; it authenticates the whole container before the first plaintext
byte reaches ``dst``, which is why ``src`` has to be seekable.
"""
import logging
import os
import struct

from typing import BinaryIO, Iterator

from argon2.exceptions import HashingError

from encutil.crypto.aead import aead_encrypt, aead_decrypt
from encutil.crypto.exceptions import WrongKeyOrTamperedError
from encutil.crypto.hash import derive_file_key, derive_kmaster
from encutil.utils.dataModels import (
    CHUNK_INDEX_FMT,
    CHUNK_LEN_FMT,
    CHUNK_SIZE,
    CONTAINER_HDR_SIZE,
    MODE_KEY,
    MODE_PASSWORD,
    NONCE_SIZE,
    SALT_SIZE,
    TAG_SIZE,
    ContainerHeader,
    KdfParams,
)
from encutil.utils.helper import wipe

logger = logging.getLogger(__name__)

CHUNK_LEN_SIZE = struct.calcsize(CHUNK_LEN_FMT)


def _chunk_nonce(base_nonce: bytes, index: int) -> bytes:
    n = int.from_bytes(base_nonce, "big") ^ index
    return n.to_bytes(NONCE_SIZE, "big")


def _chunk_aad(header_bytes: bytes, index: int) -> bytes:
    return header_bytes + struct.pack(CHUNK_INDEX_FMT, index)


def _tampered(reason: str) -> WrongKeyOrTamperedError:
    logger.debug("Rejecting container: %s", reason)
    return WrongKeyOrTamperedError("Authentication failed: wrong key or modified ciphertext")


def _write_chunks(src: BinaryIO, dst: BinaryIO, file_key: bytearray, header: ContainerHeader) -> int:
    header_bytes = header.to_bytes()
    dst.write(header_bytes)
    index = 0
    while True:
        chunk = src.read(CHUNK_SIZE)
        if not chunk:
            break
        _, ct = aead_encrypt(file_key, chunk, _chunk_aad(header_bytes, index), nonce=_chunk_nonce(header.nonce, index))
        dst.write(struct.pack(CHUNK_LEN_FMT, len(chunk)))
        dst.write(ct)
        index += 1

    # Final empty chunk; without it a truncated container would still verify
    _, ct = aead_encrypt(file_key, b"", _chunk_aad(header_bytes, index), nonce=_chunk_nonce(header.nonce, index))
    dst.write(struct.pack(CHUNK_LEN_FMT, 0))
    dst.write(ct)
    logger.debug("Sealed %d data chunk(s)", index)
    return index


def _read_header(src: BinaryIO) -> tuple[bytes, ContainerHeader]:
    header_bytes = src.read(CONTAINER_HDR_SIZE)
    try:
        header = ContainerHeader.from_bytes(header_bytes)
    except ValueError as e:
        raise _tampered(str(e)) from None
    return header_bytes, header


def _read_chunks(src: BinaryIO, file_key: bytearray, header_bytes: bytes, header: ContainerHeader) -> Iterator[bytes]:
    index = 0
    while True:
        raw_len = src.read(CHUNK_LEN_SIZE)
        if len(raw_len) != CHUNK_LEN_SIZE:
            raise _tampered(f"truncated before chunk {index}")
        (pt_len,) = struct.unpack(CHUNK_LEN_FMT, raw_len)
        if pt_len > CHUNK_SIZE:
            raise _tampered(f"chunk {index} claims {pt_len} bytes")
        ct = src.read(pt_len + TAG_SIZE)
        if len(ct) != pt_len + TAG_SIZE:
            raise _tampered(f"chunk {index} is truncated")
        pt = aead_decrypt(file_key, _chunk_nonce(header.nonce, index), ct, _chunk_aad(header_bytes, index))
        if pt_len == 0:
            break
        yield pt
        index += 1

    if src.read(1):
        raise _tampered("data after final chunk")


def _open(src: BinaryIO, dst: BinaryIO, file_key: bytearray, header_bytes: bytes, header: ContainerHeader) -> None:
    body_start = src.tell()
    for _ in _read_chunks(src, file_key, header_bytes, header):
        pass

    src.seek(body_start)
    for pt in _read_chunks(src, file_key, header_bytes, header):
        dst.write(pt)


def seal_with_key(src: BinaryIO, dst: BinaryIO, key: bytes | bytearray) -> None:
    header = ContainerHeader(mode=MODE_KEY, salt=os.urandom(SALT_SIZE), nonce=os.urandom(NONCE_SIZE))
    file_key = derive_file_key(key, header.salt)
    try:
        _write_chunks(src, dst, file_key, header)
    finally:
        wipe(file_key)


def open_with_key(src: BinaryIO, dst: BinaryIO, key: bytes | bytearray) -> None:
    header_bytes, header = _read_header(src)
    if header.mode != MODE_KEY:
        raise _tampered("container is not key-sealed")
    file_key = derive_file_key(key, header.salt)
    try:
        _open(src, dst, file_key, header_bytes, header)
    finally:
        wipe(file_key)


def seal_with_password(src: BinaryIO, dst: BinaryIO, password: bytes | bytearray, params: KdfParams | None = None) -> None:
    kdf = params or KdfParams.default()
    header = ContainerHeader(mode=MODE_PASSWORD, salt=os.urandom(SALT_SIZE), nonce=os.urandom(NONCE_SIZE), kdf=kdf)
    logger.debug("Deriving file key with Argon2id t=%d m=%d p=%d", kdf.t_cost, kdf.m_cost_kib, kdf.parallelism)
    file_key = derive_kmaster(password, header.salt, kdf.t_cost, kdf.m_cost_kib, kdf.parallelism)
    try:
        _write_chunks(src, dst, file_key, header)
    finally:
        wipe(file_key)


def open_with_password(src: BinaryIO, dst: BinaryIO, password: bytes | bytearray) -> None:
    header_bytes, header = _read_header(src)
    if header.mode != MODE_PASSWORD:
        raise _tampered("container is not password-sealed")
    kdf = header.kdf
    if not kdf.in_bounds():
        raise _tampered(f"KDF parameters out of bounds: {kdf}")
    try:
        file_key = derive_kmaster(password, header.salt, kdf.t_cost, kdf.m_cost_kib, kdf.parallelism)
    except HashingError as e:
        raise _tampered(f"Argon2 failed with {kdf}: {e}") from None
    try:
        _open(src, dst, file_key, header_bytes, header)
    finally:
        wipe(file_key)
