import tempfile

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


def wipe(buf: bytearray | None) -> None:
    if buf is None:
        return
    for i in range(len(buf)):
        buf[i] = 0


@contextmanager
def secret_bytes(value: str) -> Iterator[bytearray]:
    """UTF-8 encode a password into a buffer that is zeroed on exit."""
    buf = bytearray(value.encode("utf-8"))
    try:
        yield buf
    finally:
        wipe(buf)


def staging_file(dest: Path) -> tuple[int, Path]:
    """Create an exclusive, uniquely named 0600 file beside dest.

    Being in dest's directory keeps os.replace on one filesystem.
    """
    fd, name = tempfile.mkstemp(dir=dest.parent, prefix=f".{dest.name}.", suffix=".tmp")
    return fd, Path(name)
