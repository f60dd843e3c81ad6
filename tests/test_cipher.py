import io

import pytest
from argon2.exceptions import HashingError

from encutil.crypto import cipher
from encutil.crypto.cipher import open_with_key, open_with_password, seal_with_key, seal_with_password
from encutil.crypto.exceptions import WrongKeyOrTamperedError
from encutil.crypto.keys import Key
from encutil.utils.dataModels import CHUNK_SIZE, CONTAINER_HDR_SIZE, MAX_M_COST_KiB, ContainerHeader, KdfParams


def _seal_key(data, key):
    out = io.BytesIO()
    seal_with_key(io.BytesIO(data), out, key.raw)
    return out.getvalue()


def _open_key(blob, key):
    out = io.BytesIO()
    open_with_key(io.BytesIO(blob), out, key.raw)
    return out.getvalue()


def _seal_pw(data, password, params):
    out = io.BytesIO()
    seal_with_password(io.BytesIO(data), out, password, params)
    return out.getvalue()


def _open_pw(blob, password):
    out = io.BytesIO()
    open_with_password(io.BytesIO(blob), out, password)
    return out.getvalue()


@pytest.mark.parametrize("size", [0, 1, 5, CHUNK_SIZE - 1, CHUNK_SIZE, CHUNK_SIZE + 1, 3 * CHUNK_SIZE + 17])
def test_key_round_trip(size):
    key = Key.generate_random()
    data = bytes(i % 251 for i in range(size))
    assert _open_key(_seal_key(data, key), key) == data


def test_password_round_trip(fast_params):
    data = b"attack at dawn" * 1000
    assert _open_pw(_seal_pw(data, b"correct", fast_params), b"correct") == data


def test_password_round_trip_uses_default_params():
    out = io.BytesIO()
    seal_with_password(io.BytesIO(b"x"), out, b"pw")
    assert _open_pw(out.getvalue(), b"pw") == b"x"


def test_fresh_randomness_per_seal():
    key = Key.generate_random()
    a = _seal_key(b"same message", key)
    b = _seal_key(b"same message", key)
    assert a != b
    assert a[:CONTAINER_HDR_SIZE] != b[:CONTAINER_HDR_SIZE]


def test_wrong_key_fails():
    blob = _seal_key(b"secret", Key.generate_random())
    with pytest.raises(WrongKeyOrTamperedError):
        _open_key(blob, Key.generate_random())


def test_wrong_password_fails(fast_params):
    blob = _seal_pw(b"secret", b"correct", fast_params)
    with pytest.raises(WrongKeyOrTamperedError):
        _open_pw(blob, b"wrong")


def test_every_byte_flip_detected_key_mode():
    key = Key.generate_random()
    blob = _seal_key(b"hello world", key)
    for i in range(len(blob)):
        tampered = bytearray(blob)
        tampered[i] ^= 0x01
        out = io.BytesIO()
        with pytest.raises(WrongKeyOrTamperedError):
            open_with_key(io.BytesIO(bytes(tampered)), out, key.raw)
        assert out.getvalue() == b""


def test_every_byte_flip_detected_password_mode(fast_params):
    blob = _seal_pw(b"hello", b"pw", fast_params)
    for i in range(len(blob)):
        tampered = bytearray(blob)
        tampered[i] ^= 0x01
        out = io.BytesIO()
        with pytest.raises(WrongKeyOrTamperedError):
            open_with_password(io.BytesIO(bytes(tampered)), out, b"pw")
        assert out.getvalue() == b""


def test_late_tampering_writes_nothing():
    key = Key.generate_random()
    blob = bytearray(_seal_key(b"A" * (2 * CHUNK_SIZE + 10), key))
    blob[-20] ^= 0xFF
    out = io.BytesIO()
    with pytest.raises(WrongKeyOrTamperedError):
        open_with_key(io.BytesIO(bytes(blob)), out, key.raw)
    assert out.getvalue() == b""


@pytest.mark.parametrize("cut", [1, 20, 21])
def test_truncation_detected(cut):
    key = Key.generate_random()
    blob = _seal_key(b"B" * (CHUNK_SIZE + 5), key)
    with pytest.raises(WrongKeyOrTamperedError):
        _open_key(blob[:-cut], key)


def test_trailing_data_detected():
    key = Key.generate_random()
    blob = _seal_key(b"data", key)
    with pytest.raises(WrongKeyOrTamperedError):
        _open_key(blob + b"\x00", key)


def test_empty_and_short_input_rejected():
    key = Key.generate_random()
    for blob in (b"", b"EFU1", b"\x00" * CONTAINER_HDR_SIZE):
        with pytest.raises(WrongKeyOrTamperedError):
            _open_key(blob, key)


def test_mode_mismatch_is_indistinguishable(fast_params):
    key = Key.generate_random()
    with pytest.raises(WrongKeyOrTamperedError):
        _open_pw(_seal_key(b"x", key), b"pw")
    with pytest.raises(WrongKeyOrTamperedError):
        _open_key(_seal_pw(b"x", b"pw", fast_params), key)


def _password_container_with(kdf, fast_params):
    blob = _seal_pw(b"x", b"pw", fast_params)
    header = ContainerHeader.from_bytes(blob[:CONTAINER_HDR_SIZE])
    forged = ContainerHeader(mode=header.mode, salt=header.salt, nonce=header.nonce, kdf=kdf)
    return forged.to_bytes() + blob[CONTAINER_HDR_SIZE:]


def test_oversized_memory_cost_never_reaches_argon2(fast_params, monkeypatch):
    blob = _password_container_with(KdfParams(1, MAX_M_COST_KiB + 1, 1), fast_params)

    def fail(*a, **k):
        raise AssertionError("Argon2 should not run")

    monkeypatch.setattr(cipher, "derive_kmaster", fail)
    with pytest.raises(WrongKeyOrTamperedError):
        _open_pw(blob, b"pw")


def test_argon2_failure_is_reported_as_tampering(fast_params, monkeypatch):
    blob = _password_container_with(KdfParams(1, MAX_M_COST_KiB, 1), fast_params)

    def out_of_memory(*a, **k):
        raise HashingError("Memory allocation error")

    monkeypatch.setattr(cipher, "derive_kmaster", out_of_memory)
    with pytest.raises(WrongKeyOrTamperedError):
        _open_pw(blob, b"pw")
