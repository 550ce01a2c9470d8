"""Exception hierarchy for PackedAncestryMap decoding.

File-system failures are not wrapped: a missing or unreadable file raises the
builtin OSError subclass from the failing open/read call.
"""

from pathlib import Path


class PackedAncestryMapError(Exception):
    """Base class for all decoding errors."""

    pass


class MalformedRecordError(PackedAncestryMapError, ValueError):
    """A marker or individual table line is missing fields or has unparseable values."""

    def __init__(self, message: str, path: Path | str | None = None, line_num: int | None = None):
        self.path = str(path) if path is not None else None
        self.line_num = line_num
        location = ""
        if self.path is not None:
            location = f"{self.path}:{line_num}: " if line_num is not None else f"{self.path}: "
        super().__init__(f"{location}{message}")


class IntegrityMismatchError(PackedAncestryMapError):
    """The *.geno header does not authenticate the supplied *.ind / *.snp pair."""

    def __init__(
        self,
        message: str,
        ind_digest: str | None = None,
        snp_digest: str | None = None,
    ):
        self.ind_digest = ind_digest
        self.snp_digest = snp_digest
        super().__init__(message)


class DimensionMismatchError(IntegrityMismatchError):
    """Header digests match but its declared counts disagree with the tables."""

    def __init__(
        self,
        message: str,
        declared: tuple[int, int] | None = None,
        actual: tuple[int, int] | None = None,
    ):
        self.declared = declared
        self.actual = actual
        super().__init__(message)


class ShortRecordError(PackedAncestryMapError, ValueError):
    """The *.geno file ends before a full record could be read."""

    def __init__(
        self, message: str, record_index: int | None = None, expected: int = 0, got: int = 0
    ):
        self.record_index = record_index
        self.expected = expected
        self.got = got
        super().__init__(message)


class HandlerError(PackedAncestryMapError):
    """One or more row handler invocations raised."""

    def __init__(self, failures: list[tuple[str, BaseException]]):
        self.failures = failures
        names = ", ".join(name for name, _ in failures[:5])
        more = f" (+{len(failures) - 5} more)" if len(failures) > 5 else ""
        super().__init__(f"Row handler failed for {len(failures)} marker(s): {names}{more}")
