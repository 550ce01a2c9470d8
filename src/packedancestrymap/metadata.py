"""Parsers for the *.snp marker table and *.ind individual table.

Marker table (whitespace separated, no header):
    name  chromosome  genetic_pos  physical_pos  [ref  alt]
    rs3094315  1  0.020130  752566  G  A

Individual table (whitespace separated, no header):
    sample_id  sex  label
    I0001  M  Case
"""

import logging
from pathlib import Path

from .errors import MalformedRecordError
from .models import UNKNOWN_ALLELE, Individual, Marker

logger = logging.getLogger(__name__)

SNP_REQUIRED_FIELDS = 4
IND_REQUIRED_FIELDS = 3


def parse_snp_line(
    line: str, index: int = 0, path: Path | str | None = None, line_num: int | None = None
) -> Marker:
    """Parse a single marker table line.

    Args:
        line: Raw line from the *.snp file
        index: 0-based marker index to record on the Marker
        path: Source file, for error messages
        line_num: 1-based line number, for error messages

    Returns:
        Parsed Marker

    Raises:
        MalformedRecordError: If fields are missing or not numeric where required
    """
    fields = line.split()
    if len(fields) < SNP_REQUIRED_FIELDS:
        raise MalformedRecordError(
            f"expected at least {SNP_REQUIRED_FIELDS} columns, got {len(fields)}",
            path,
            line_num,
        )

    try:
        chromosome = int(fields[1])
    except ValueError:
        raise MalformedRecordError(f"invalid chromosome {fields[1]!r}", path, line_num) from None

    try:
        genetic_position = float(fields[2])
    except ValueError:
        raise MalformedRecordError(
            f"invalid genetic position {fields[2]!r}", path, line_num
        ) from None

    try:
        physical_position = int(fields[3])
    except ValueError:
        raise MalformedRecordError(
            f"invalid physical position {fields[3]!r}", path, line_num
        ) from None
    if physical_position < 0:
        raise MalformedRecordError(
            f"physical position must be non-negative, got {physical_position}", path, line_num
        )

    ref = fields[4][0] if len(fields) > 4 else UNKNOWN_ALLELE
    alt = fields[5][0] if len(fields) > 5 else UNKNOWN_ALLELE

    return Marker(
        name=fields[0],
        chromosome=chromosome,
        genetic_position=genetic_position,
        physical_position=physical_position,
        ref=ref,
        alt=alt,
        index=index,
    )


def parse_ind_line(
    line: str, path: Path | str | None = None, line_num: int | None = None
) -> Individual:
    """Parse a single individual table line."""
    fields = line.split()
    if len(fields) < IND_REQUIRED_FIELDS:
        raise MalformedRecordError(
            f"expected {IND_REQUIRED_FIELDS} columns, got {len(fields)}", path, line_num
        )
    return Individual(sample_id=fields[0], sex=fields[1], label=fields[2])


def _iter_lines(path: Path):
    """Yield (line_num, stripped text) for each non-blank line of a table.

    Lines are split on the newline byte, as the digest does, and decoded as
    strict UTF-8.
    """
    with open(path, "rb") as f:
        for line_num, raw in enumerate(f, 1):
            try:
                line = raw.decode("utf-8").strip()
            except UnicodeDecodeError as e:
                raise MalformedRecordError(
                    f"invalid UTF-8 at byte {e.start}", path, line_num
                ) from None
            if line:
                yield line_num, line


def read_snp_file(path: Path | str) -> tuple[Marker, ...]:
    """Load every marker from a *.snp file, in file order.

    Blank lines are skipped. The file is read fully and closed before returning.

    Raises:
        FileNotFoundError: If the file doesn't exist
        MalformedRecordError: If any line is malformed or not valid UTF-8
    """
    path = Path(path)
    markers: list[Marker] = []

    for line_num, line in _iter_lines(path):
        markers.append(parse_snp_line(line, len(markers), path, line_num))

    logger.debug("Read %d markers from %s", len(markers), path)
    return tuple(markers)


def read_ind_file(path: Path | str) -> tuple[Individual, ...]:
    """Load every individual from a *.ind file, in file order."""
    path = Path(path)
    individuals = tuple(
        parse_ind_line(line, path, line_num) for line_num, line in _iter_lines(path)
    )

    logger.debug("Read %d individuals from %s", len(individuals), path)
    return individuals
