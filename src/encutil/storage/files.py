import logging
import os

from contextlib import suppress
from pathlib import Path
from typing import BinaryIO, Callable

from encutil.crypto.cipher import open_with_key, open_with_password, seal_with_key, seal_with_password
from encutil.crypto.exceptions import FileIOError
from encutil.crypto.keys import Key
from encutil.utils.helper import staging_file

logger = logging.getLogger(__name__)

StreamOp = Callable[[BinaryIO, BinaryIO], None]


def _discard(tmp: Path | None) -> None:
    if tmp is not None:
        with suppress(OSError):
            tmp.unlink()


def _transform(src: Path, dest: Path, op: StreamOp) -> None:
    """Run op from src into a fresh staging file, then move it over dest.

    dest is only replaced once op has returned; if it raises, dest keeps
    whatever it held before.
    """
    tmp = None
    try:
        with src.open("rb") as fin:
            fd, tmp = staging_file(dest)
            with os.fdopen(fd, "wb") as fout:
                op(fin, fout)
        os.replace(tmp, dest)
        tmp = None
    except OSError as e:
        logger.warning("I/O error processing %s -> %s: %s", src, dest, e)
        raise FileIOError(f"Could not process {src} -> {dest}") from e
    finally:
        _discard(tmp)
    logger.debug("Wrote %s", dest)


def encrypt_file(input_path: Path, output_path: Path, key: Key) -> None:
    _transform(Path(input_path), Path(output_path), lambda fin, fout: seal_with_key(fin, fout, key.raw))


def decrypt_file(input_path: Path, output_path: Path, key: Key) -> None:
    _transform(Path(input_path), Path(output_path), lambda fin, fout: open_with_key(fin, fout, key.raw))


def encrypt_file_with_password(input_path: Path, output_path: Path, password: bytes | bytearray) -> None:
    _transform(Path(input_path), Path(output_path), lambda fin, fout: seal_with_password(fin, fout, password))


def decrypt_file_with_password(input_path: Path, output_path: Path, password: bytes | bytearray) -> None:
    _transform(Path(input_path), Path(output_path), lambda fin, fout: open_with_password(fin, fout, password))


def read_key_file(path: Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning("Could not read key file %s: %s", path, e)
        raise FileIOError(f"Could not read {path}") from e


def write_key_file(path: Path, encoded_key: str) -> None:
    """Write an encoded key with owner-only permissions, replacing path atomically."""
    path = Path(path)
    tmp = None
    try:
        fd, tmp = staging_file(path)
        with os.fdopen(fd, "w", encoding="ascii") as f:
            f.write(encoded_key)
        os.replace(tmp, path)
        tmp = None
    except OSError as e:
        logger.warning("Could not write key file %s: %s", path, e)
        raise FileIOError(f"Could not write {path}") from e
    finally:
        _discard(tmp)
    logger.debug("Wrote key file %s", path)
