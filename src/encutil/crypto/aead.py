import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from typing import Tuple

from encutil.crypto.exceptions import WrongKeyOrTamperedError
from encutil.utils.dataModels import NONCE_SIZE


def aead_encrypt(key: bytes | bytearray, plaintext: bytes, aad: bytes | None = None,
                 nonce: bytes | None = None) -> Tuple[bytes, bytes]:
    if nonce is None:
        nonce = os.urandom(NONCE_SIZE)
    aesgcm = AESGCM(key)
    ct = aesgcm.encrypt(nonce, plaintext, aad)
    return nonce, ct


def aead_decrypt(key: bytes | bytearray, nonce: bytes, ct: bytes, aad: bytes | None = None) -> bytes:
    aesgcm = AESGCM(key)
    try:
        return aesgcm.decrypt(nonce, ct, aad)
    except InvalidTag:
        raise WrongKeyOrTamperedError("Authentication failed: wrong key or modified ciphertext") from None
