import enum

from encutil.ui.usecases import (
    DecryptFileWithKeyfile,
    DecryptFileWithPassword,
    EncryptFileWithKeyfile,
    EncryptFileWithPassword,
    GenerateKeyfile,
)

USAGE = """\
Usage:
  encutil --encrypt --password <input> <output>
  encutil --decrypt --password <input> <output>
  encutil --genkey <keyfile>
  encutil --encrypt --keyfile <keyfile> <input> <output>
  encutil --decrypt --keyfile <keyfile> <input> <output>"""


class Mode(enum.Enum):
    """Supported argument shapes, in matching priority order."""

    ENCRYPT_PASSWORD = (("--encrypt", "--password"), 2, EncryptFileWithPassword)
    DECRYPT_PASSWORD = (("--decrypt", "--password"), 2, DecryptFileWithPassword)
    GENERATE_KEY = (("--genkey",), 1, GenerateKeyfile)
    ENCRYPT_KEYFILE = (("--encrypt", "--keyfile"), 3, EncryptFileWithKeyfile)
    DECRYPT_KEYFILE = (("--decrypt", "--keyfile"), 3, DecryptFileWithKeyfile)

    def __init__(self, flags, arity, use_case):
        self.flags = flags
        self.arity = arity
        self.use_case = use_case

    def matches(self, argv: list[str]) -> bool:
        args = argv[1:]
        return (
            len(args) == len(self.flags) + self.arity
            and tuple(args[:len(self.flags)]) == self.flags
        )


def match_mode(argv: list[str]) -> Mode | None:
    """First mode whose shape matches argv (argv[0] is the program name)."""
    return next((mode for mode in Mode if mode.matches(argv)), None)


def match_use_case(argv: list[str]):
    mode = match_mode(argv)
    if mode is None:
        return None
    return mode.use_case.from_args(argv[1 + len(mode.flags):])
