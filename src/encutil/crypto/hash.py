from argon2.low_level import hash_secret_raw, Type as Argon2Type
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from encutil.utils.dataModels import KEY_SIZE

FILE_KEY_INFO = b"encutil file key"


def sha3_512_bytes(data: bytes | bytearray) -> bytes:
    digest = hashes.Hash(hashes.SHA3_512(), backend=default_backend())
    digest.update(data)
    return digest.finalize()


def sha256_bytes(data: bytes) -> bytes:
    digest = hashes.Hash(hashes.SHA256(), backend=default_backend())
    digest.update(data)
    return digest.finalize()


def derive_kmaster(passphrase: bytes | bytearray, salt: bytes, t_cost: int, m_cost_kib: int, parallelism: int) -> bytearray:
    """Kmaster = Argon2id(SHA3-512(passphrase)) -> 32 bytes"""
    prehash = sha3_512_bytes(passphrase)
    kmaster = hash_secret_raw(
        secret=prehash,
        salt=salt,
        time_cost=t_cost,
        memory_cost=m_cost_kib,
        parallelism=parallelism,
        hash_len=KEY_SIZE,
        type=Argon2Type.ID,
    )
    return bytearray(kmaster)


def derive_file_key(key: bytes | bytearray, salt: bytes) -> bytearray:
    """Per-file subkey = HKDF-SHA256(key, salt) -> 32 bytes"""
    hkdf = HKDF(algorithm=hashes.SHA256(), length=KEY_SIZE, salt=salt, info=FILE_KEY_INFO)
    return bytearray(hkdf.derive(key))
