"""Packed genotype record decoding.

A *.geno file is a sequence of fixed-width records. The first record is the
header; each following record holds one marker, with four 2-bit genotype codes
per byte. Individual ``i`` lives in byte ``i // 4`` at bit offset
``(i % 4) * 2``, so the lowest bit pair of a byte belongs to the lowest index.
"""

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from .errors import ShortRecordError

logger = logging.getLogger(__name__)

# Records are never narrower than 48 bytes, a convention inherited from
# EIGENSOFT's mcio.c for small sample counts.
MIN_RECORD_WIDTH = 48

# Byte value -> the four codes it packs, lowest index first.
_UNPACK = tuple(
    tuple((byte >> shift) & 0b11 for shift in (0, 2, 4, 6)) for byte in range(256)
)


def packed_size(n_individuals: int) -> int:
    """Bytes needed to hold n_individuals 2-bit codes."""
    return -(-n_individuals // 4)


def record_width(n_individuals: int) -> int:
    """Width in bytes of every record of a file with n_individuals samples."""
    if n_individuals < 0:
        raise ValueError(f"n_individuals must be non-negative, got {n_individuals}")
    return max(MIN_RECORD_WIDTH, packed_size(n_individuals))


def decode_record(record: bytes, n_individuals: int) -> list[int]:
    """Unpack one record into n_individuals genotype codes (0, 1, 2 or 3=missing).

    Raises:
        ShortRecordError: If the record holds fewer than n_individuals codes
    """
    needed = packed_size(n_individuals)
    if len(record) < needed:
        raise ShortRecordError(
            f"Record has {len(record)} bytes, {needed} needed for {n_individuals} individuals",
            expected=needed,
            got=len(record),
        )

    row = [code for byte in record[:needed] for code in _UNPACK[byte]]
    del row[n_individuals:]
    return row


class PackedGenoReader:
    """Sequential reader over the records of a packed *.geno file.

    Example:
        >>> with PackedGenoReader(Path("data.geno"), n_individuals=5) as reader:
        ...     reader.skip_header()
        ...     for row in reader.iter_rows(n_markers=100):
        ...         print(row)
    """

    def __init__(self, path: Path | str, n_individuals: int):
        self.path = Path(path)
        self.n_individuals = n_individuals
        self.record_width = record_width(n_individuals)
        self.records_read = 0
        self._file = None
        self._header_skipped = False

    def open(self) -> None:
        if self._file is None:
            self._file = open(self.path, "rb")

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "PackedGenoReader":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def expected_size(self, n_markers: int) -> int:
        """File size in bytes for a header plus n_markers records."""
        return self.record_width * (n_markers + 1)

    def check_size(self, n_markers: int) -> None:
        """Fail up front if the file is too short to hold every record.

        Raises:
            ShortRecordError: If the file is smaller than expected_size(n_markers)
        """
        size = os.path.getsize(self.path)
        expected = self.expected_size(n_markers)
        if size < expected:
            raise ShortRecordError(
                f"{self.path} is {size} bytes, expected at least {expected} "
                f"({n_markers} markers x {self.record_width} bytes plus header)",
                expected=expected,
                got=size,
            )
        if size > expected:
            logger.debug(
                "%s has %d trailing bytes after the last record", self.path, size - expected
            )

    def read_record(self) -> bytes:
        """Read the next raw record.

        Raises:
            ShortRecordError: If fewer than record_width bytes remain
        """
        if self._file is None:
            self.open()
        record = self._file.read(self.record_width)
        if len(record) < self.record_width:
            what = "header" if self.records_read == 0 else f"record {self.records_read}"
            raise ShortRecordError(
                f"Unexpected end of {self.path} in {what}: "
                f"got {len(record)} of {self.record_width} bytes",
                record_index=self.records_read,
                expected=self.record_width,
                got=len(record),
            )
        self.records_read += 1
        return record

    def skip_header(self) -> bytes:
        """Consume the header record. Must precede any row decoding."""
        if self._header_skipped:
            raise RuntimeError("Header record already consumed")
        header = self.read_record()
        self._header_skipped = True
        return header

    def read_row(self) -> list[int]:
        """Read and decode the next marker record."""
        if not self._header_skipped:
            self.skip_header()
        return decode_record(self.read_record(), self.n_individuals)

    def iter_rows(self, n_markers: int) -> Iterator[list[int]]:
        """Yield a freshly decoded row for each of the next n_markers records."""
        for _ in range(n_markers):
            yield self.read_row()
