"""Typed errors for wzpack.

Every error the core can raise extends :class:`WzError` and carries the exit
code the command line front end returns for it. The core itself never exits;
``main.py`` is the only place where an error becomes a process exit code.
"""

EXIT_OK = 0
EXIT_IO = 1
EXIT_USAGE = 2
EXIT_CORRUPT = 10
EXIT_CORRUPT_TABLE = 11
EXIT_TRUNCATED = 12
EXIT_UNSUPPORTED_SIZE = 13


class WzError(Exception):
    """Base error for wzpack."""

    exit_code: int = EXIT_CORRUPT


class UsageError(WzError):
    exit_code = EXIT_USAGE


class CorruptArtifactError(WzError):
    """The artifact is malformed (trailing bytes, length mismatch, ...)."""

    exit_code = EXIT_CORRUPT


class CorruptTableError(CorruptArtifactError):
    """The serialized frequency table is malformed or oversized."""

    exit_code = EXIT_CORRUPT_TABLE


class TruncatedInputError(CorruptArtifactError):
    """The bit stream ends before the declared content length is met."""

    exit_code = EXIT_TRUNCATED


class UnsupportedSizeError(WzError):
    """A value does not fit the 64-bit counters of the wire format."""

    exit_code = EXIT_UNSUPPORTED_SIZE
