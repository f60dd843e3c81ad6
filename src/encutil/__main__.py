#!/usr/bin/env python3
"""
encutil: encrypt and decrypt files with a password or a keyfile.

Usage:
  encutil --encrypt --password plaintext.txt ciphertext.bin
  encutil --decrypt --password ciphertext.bin plaintext.txt
  encutil --genkey secret-key.txt
  encutil --encrypt --keyfile secret-key.txt plaintext.txt ciphertext.bin
  encutil --decrypt --keyfile secret-key.txt ciphertext.bin plaintext.txt

Encrypted file (big-endian):
    magic     : 4 bytes   -> b"EFU1"
    version   : 1 byte    -> 0x01
    mode      : 1 byte    -> 0x00 keyfile, 0x01 password
    t_cost    : u32       (Argon2, 0 in keyfile mode)
    m_cost    : u32  (KiB)
    parallel  : u32
    salt      : 16 bytes
    nonce     : 12 bytes
    chunks    : u32 plaintext length || AES-256-GCM(ciphertext || tag),
                ending with a zero-length chunk

Keyfiles are hex text: version tag, key material and a SHA-256 checksum.
A password-protected keyfile carries the key sealed in a password-mode
container as its key material.

Security choices:
  - AEAD: AES-256-GCM via cryptography.hazmat, header bound into every chunk
  - Password mode: Argon2id(SHA3-512(password)) via argon2-cffi
  - Keyfile mode: per-file subkey HKDF-SHA256(key, salt)
  - Wrong credentials and modified files are reported identically
"""
from __future__ import annotations

import logging
import sys

from colorama import just_fix_windows_console

from encutil.ui.cli import USAGE, match_use_case
from encutil.ui.prompt import Prompt
from encutil.ui.usecases import MSG_INPUT_CANCELLED, report_failure
from encutil.utils.dataModels import LOG_FORMAT


def main(argv: list[str] | None = None, prompt: Prompt | None = None) -> int:
    argv = sys.argv if argv is None else argv
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)
    just_fix_windows_console()

    use_case = match_use_case(argv)
    if use_case is None:
        print("Bad command-line arguments.")
        print(USAGE)
        return 1
    try:
        ok = use_case.run(prompt)
    except (EOFError, KeyboardInterrupt):
        print()
        report_failure(MSG_INPUT_CANCELLED)
        return 1
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
