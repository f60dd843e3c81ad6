"""
The five operations encutil can perform.

Each operation prompts for whatever credentials it needs before touching any
file, resolves a key, makes a single call into the storage layer and reports
the outcome. run() returns True on success and False after printing one
message describing the failure.
"""
from __future__ import annotations

import logging

from dataclasses import dataclass
from pathlib import Path

from colorama import Fore, Style

from encutil.crypto.exceptions import BadFormatError, FileIOError, UsageError, WrongKeyOrTamperedError
from encutil.crypto.keys import Key, PasswordProtectedKey, decode_key_file
from encutil.storage.files import (
    decrypt_file,
    decrypt_file_with_password,
    encrypt_file,
    encrypt_file_with_password,
    read_key_file,
    write_key_file,
)
from encutil.ui.prompt import Prompt
from encutil.utils.helper import secret_bytes

logger = logging.getLogger(__name__)

MSG_IO_ERROR = "There was a file I/O error."
MSG_KEYFILE_READ = "There was an error reading the keyfile you provided."
MSG_KEYFILE_WRITE = "There was an error writing to the file path you provided."
MSG_KEYFILE_FORMAT = "The keyfile you provided is not in a recognized format."
MSG_KEYFILE_UNLOCK = "You've given the wrong password, or your keyfile is corrupted."
MSG_INPUT_CANCELLED = "Input was cancelled; nothing was written."
MSG_WRONG_PASSWORD = (
    "Either you're trying to decrypt with the wrong password, or the encrypted file\n"
    "has been changed since it was first created. The changes might have been made by\n"
    "someone trying to attack your security, so we will not proceed decrypting the\n"
    "file."
)
MSG_WRONG_KEYFILE = (
    "Either you're trying to decrypt with the wrong keyfile, or the encrypted file\n"
    "has been changed since it was first created. The changes might have been made by\n"
    "someone trying to attack your security, so we will not proceed decrypting the\n"
    "file."
)


def report_failure(message: str) -> None:
    print(f"{Fore.RED}[!]{Style.RESET_ALL} {message}")


def report_success(message: str) -> None:
    print(f"{Fore.GREEN}[+]{Style.RESET_ALL} {message}")


def _require_arity(cls: type, args: list[str], n: int) -> None:
    if len(args) != n:
        raise UsageError(f"{cls.__name__} takes {n} path argument(s), got {len(args)}")


def resolve_keyfile(keyfile_path: Path, prompt: Prompt) -> Key | None:
    """Load a key file, asking for its password only if it is protected."""
    try:
        text = read_key_file(keyfile_path)
    except FileIOError:
        report_failure(MSG_KEYFILE_READ)
        return None

    try:
        decoded = decode_key_file(text)
    except BadFormatError:
        logger.debug("Key file %s is neither a plain nor a protected key", keyfile_path)
        report_failure(MSG_KEYFILE_FORMAT)
        return None

    if isinstance(decoded, Key):
        return decoded

    with secret_bytes(prompt.password()) as password:
        try:
            return decoded.unlock(password)
        except WrongKeyOrTamperedError:
            report_failure(MSG_KEYFILE_UNLOCK)
            return None


@dataclass
class EncryptFileWithPassword:
    input_path: Path
    output_path: Path

    @classmethod
    def from_args(cls, args: list[str]) -> EncryptFileWithPassword:
        _require_arity(cls, args, 2)
        return cls(Path(args[0]), Path(args[1]))

    def run(self, prompt: Prompt | None = None) -> bool:
        prompt = prompt or Prompt()
        with secret_bytes(prompt.password_and_verify()) as password:
            try:
                encrypt_file_with_password(self.input_path, self.output_path, password)
            except FileIOError:
                report_failure(MSG_IO_ERROR)
                return False
        report_success(f"Encrypted {self.input_path} -> {self.output_path}")
        return True


@dataclass
class DecryptFileWithPassword:
    input_path: Path
    output_path: Path

    @classmethod
    def from_args(cls, args: list[str]) -> DecryptFileWithPassword:
        _require_arity(cls, args, 2)
        return cls(Path(args[0]), Path(args[1]))

    def run(self, prompt: Prompt | None = None) -> bool:
        prompt = prompt or Prompt()
        with secret_bytes(prompt.password()) as password:
            try:
                decrypt_file_with_password(self.input_path, self.output_path, password)
            except WrongKeyOrTamperedError:
                report_failure(MSG_WRONG_PASSWORD)
                return False
            except FileIOError:
                report_failure(MSG_IO_ERROR)
                return False
        report_success(f"Decrypted {self.input_path} -> {self.output_path}")
        return True


@dataclass
class GenerateKeyfile:
    path: Path

    @classmethod
    def from_args(cls, args: list[str]) -> GenerateKeyfile:
        _require_arity(cls, args, 1)
        return cls(Path(args[0]))

    def run(self, prompt: Prompt | None = None) -> bool:
        prompt = prompt or Prompt()
        if prompt.yes_no("Would you like to protect your keyfile with a password"):
            with secret_bytes(prompt.password_and_verify()) as password:
                encoded_key = PasswordProtectedKey.create_from_password(password).encode()
        else:
            with Key.generate_random() as key:
                encoded_key = key.encode()

        try:
            write_key_file(self.path, encoded_key)
        except FileIOError:
            report_failure(MSG_KEYFILE_WRITE)
            return False
        report_success(f"Wrote keyfile {self.path}")
        return True


@dataclass
class EncryptFileWithKeyfile:
    keyfile_path: Path
    input_path: Path
    output_path: Path

    @classmethod
    def from_args(cls, args: list[str]) -> EncryptFileWithKeyfile:
        _require_arity(cls, args, 3)
        return cls(Path(args[0]), Path(args[1]), Path(args[2]))

    def run(self, prompt: Prompt | None = None) -> bool:
        key = resolve_keyfile(self.keyfile_path, prompt or Prompt())
        if key is None:
            return False
        with key:
            try:
                encrypt_file(self.input_path, self.output_path, key)
            except FileIOError:
                report_failure(MSG_IO_ERROR)
                return False
        report_success(f"Encrypted {self.input_path} -> {self.output_path}")
        return True


@dataclass
class DecryptFileWithKeyfile:
    keyfile_path: Path
    input_path: Path
    output_path: Path

    @classmethod
    def from_args(cls, args: list[str]) -> DecryptFileWithKeyfile:
        _require_arity(cls, args, 3)
        return cls(Path(args[0]), Path(args[1]), Path(args[2]))

    def run(self, prompt: Prompt | None = None) -> bool:
        key = resolve_keyfile(self.keyfile_path, prompt or Prompt())
        if key is None:
            return False
        with key:
            try:
                decrypt_file(self.input_path, self.output_path, key)
            except WrongKeyOrTamperedError:
                report_failure(MSG_WRONG_KEYFILE)
                return False
            except FileIOError:
                report_failure(MSG_IO_ERROR)
                return False
        report_success(f"Decrypted {self.input_path} -> {self.output_path}")
        return True
