import struct

from dataclasses import dataclass

DEFAULT_T_COST = 4
DEFAULT_M_COST_KiB = 262144  # 256 MiB (tune per device)
DEFAULT_PARALLELISM = 2

# Upper bounds for cost parameters read back from a container header
MAX_T_COST = 64
MAX_M_COST_KiB = 1048576  # 1 GiB
MAX_PARALLELISM = 64

KEY_SIZE = 32
SALT_SIZE = 16
NONCE_SIZE = 12
TAG_SIZE = 16
CHUNK_SIZE = 64 * 1024

CONTAINER_MAGIC = b"EFU1"
CONTAINER_VERSION = 1
MODE_KEY = 0
MODE_PASSWORD = 1
CONTAINER_HDR_FMT = ">4sBBIII16s12s"  # magic, ver, mode, t, m, p, salt(16), nonce(12)
CONTAINER_HDR_SIZE = struct.calcsize(CONTAINER_HDR_FMT)
CHUNK_LEN_FMT = ">I"
CHUNK_INDEX_FMT = ">Q"

KEY_VERSION_TAG = b"\xde\xf0\x00\x00"
PROTECTED_KEY_VERSION_TAG = b"\xde\xf1\x00\x00"
CHECKSUM_SIZE = 32

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class KdfParams:
    t_cost: int
    m_cost_kib: int
    parallelism: int

    @classmethod
    def default(cls) -> "KdfParams":
        return cls(DEFAULT_T_COST, DEFAULT_M_COST_KiB, DEFAULT_PARALLELISM)

    def in_bounds(self) -> bool:
        """Whether Argon2 can be run with these values without absurd cost."""
        return (
            1 <= self.t_cost <= MAX_T_COST
            and 1 <= self.parallelism <= MAX_PARALLELISM
            and 8 * self.parallelism <= self.m_cost_kib <= MAX_M_COST_KiB
        )


@dataclass(frozen=True)
class ContainerHeader:
    mode: int
    salt: bytes
    nonce: bytes
    kdf: KdfParams | None = None

    def to_bytes(self) -> bytes:
        kdf = self.kdf or KdfParams(0, 0, 0)
        return struct.pack(
            CONTAINER_HDR_FMT,
            CONTAINER_MAGIC,
            CONTAINER_VERSION,
            self.mode,
            kdf.t_cost,
            kdf.m_cost_kib,
            kdf.parallelism,
            self.salt,
            self.nonce,
        )

    @staticmethod
    def from_bytes(b: bytes) -> "ContainerHeader":
        if len(b) != CONTAINER_HDR_SIZE:
            raise ValueError("container header is truncated")
        magic, ver, mode, t, m, p, salt, nonce = struct.unpack(CONTAINER_HDR_FMT, b)
        if magic != CONTAINER_MAGIC:
            raise ValueError("Invalid container magic")
        if ver != CONTAINER_VERSION:
            raise ValueError("Unsupported container version")
        if mode == MODE_KEY:
            if (t, m, p) != (0, 0, 0):
                raise ValueError("Key-mode container carries KDF parameters")
            return ContainerHeader(mode=mode, salt=salt, nonce=nonce)
        if mode == MODE_PASSWORD:
            return ContainerHeader(mode=mode, salt=salt, nonce=nonce, kdf=KdfParams(t, m, p))
        raise ValueError(f"Unknown container mode {mode}")
