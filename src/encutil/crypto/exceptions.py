class EncUtilError(Exception):
    """Base exception for all encutil errors."""


class BadFormatError(EncUtilError):
    """An encoded key string is malformed or of the wrong kind."""


class WrongKeyOrTamperedError(EncUtilError):
    """Authentication failed: wrong key/password, or the data was modified.

    The two causes are deliberately indistinguishable.
    """


class FileIOError(EncUtilError):
    """A file could not be read or written."""


class UsageError(EncUtilError):
    """Command-line arguments do not match any supported pattern."""
