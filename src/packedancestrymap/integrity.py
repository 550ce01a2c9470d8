"""Cross-file integrity check between a *.geno header and its *.ind / *.snp tables.

The packed genotype header embeds a 32-bit digest of the first column of each
metadata table, rendered as unpadded lowercase hex. A table digest is built by
hashing the first whitespace-delimited token of every line:

    token_hash = fold(token_hash * 23 + byte) over the token bytes
    digest = fold((digest * 17) ^ token_hash) over the lines

with all arithmetic wrapping at 32 bits.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from .errors import DimensionMismatchError
from .models import GenoHeader

logger = logging.getLogger(__name__)

HASH_MASK = 0xFFFFFFFF
TOKEN_MULTIPLIER = 23
LINE_MULTIPLIER = 17
GENO_MAGIC = "GENO"

# Longest header line considered; matches the default line buffer of the
# reference reader, beyond which the line is truncated.
HEADER_LINE_LIMIT = 64 * 1024

_FIRST_TOKEN = re.compile(rb"\S+")


def polynomial_hash(token: bytes | str) -> int:
    """Hash a single token with the base-23 rolling polynomial (32-bit wrap)."""
    if isinstance(token, str):
        token = token.encode("utf-8")

    value = 0
    for byte in token:
        value = (value * TOKEN_MULTIPLIER + byte) & HASH_MASK
    return value


def compute_digest(path: Path | str) -> int:
    """Digest the first column of a text table.

    Lines are delimited by the newline byte; a line without any
    non-whitespace character contributes an empty token. A final line with
    no trailing newline is still hashed, unlike readers that require the
    table to end in a newline and silently drop an unterminated last line.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    digest = 0
    with open(path, "rb") as f:
        for line in f:
            match = _FIRST_TOKEN.search(line)
            token_hash = polynomial_hash(match.group()) if match else 0
            digest = ((digest * LINE_MULTIPLIER) & HASH_MASK) ^ token_hash

    logger.debug("Digest of %s: %x", path, digest)
    return digest


def format_digest(digest: int) -> str:
    """Render a digest the way the header stores it (lowercase hex, no padding)."""
    return f"{digest:x}"


def read_header_line(geno_path: Path | str) -> str:
    """Read the first line of a *.geno file as text.

    Only bytes up to the first newline (or HEADER_LINE_LIMIT) are read.
    """
    with open(geno_path, "rb") as f:
        raw = f.readline(HEADER_LINE_LIMIT)
    return raw.rstrip(b"\r\n").decode("latin-1")


def parse_geno_header(line: str) -> GenoHeader:
    """Split a header line into its conventional fields.

    The header record is NUL padded to the record width, so only text before
    the first NUL byte is considered.
    """
    text = line.split("\x00", 1)[0]
    fields = text.split()
    if not fields:
        return GenoHeader(line=line)

    magic = fields[0]
    if magic != GENO_MAGIC or len(fields) < 5:
        return GenoHeader(line=line, magic=magic)

    try:
        n_individuals = int(fields[1])
        n_markers = int(fields[2])
    except ValueError:
        return GenoHeader(line=line, magic=magic)

    return GenoHeader(
        line=line,
        magic=magic,
        n_individuals=n_individuals,
        n_markers=n_markers,
        ind_hash=fields[3].lower(),
        snp_hash=fields[4].lower(),
    )


@dataclass
class IntegrityReport:
    """Outcome of checking a *.geno header against its metadata tables."""

    header: GenoHeader
    ind_digest: int
    snp_digest: int
    ind_found: bool
    snp_found: bool
    distinct_paths: bool
    strict: bool = False

    @property
    def ind_hex(self) -> str:
        return format_digest(self.ind_digest)

    @property
    def snp_hex(self) -> str:
        return format_digest(self.snp_digest)

    @property
    def is_valid(self) -> bool:
        return self.ind_found and self.snp_found and self.distinct_paths

    @property
    def problems(self) -> list[str]:
        problems = []
        if not self.distinct_paths:
            problems.append("individual and marker tables are the same file")
        if not self.ind_found:
            problems.append(f"individual digest {self.ind_hex} not found in header")
        if not self.snp_found:
            problems.append(f"marker digest {self.snp_hex} not found in header")
        return problems

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "strict": self.strict,
            "ind_digest": self.ind_hex,
            "snp_digest": self.snp_hex,
            "header_ind_hash": self.header.ind_hash,
            "header_snp_hash": self.header.snp_hash,
            "declared_individuals": self.header.n_individuals,
            "declared_markers": self.header.n_markers,
            "problems": self.problems,
        }


def _same_file(a: Path | str, b: Path | str) -> bool:
    return Path(a).resolve() == Path(b).resolve()


def digests_for(ind_path: Path | str, snp_path: Path | str) -> tuple[int, int]:
    """Compute the (individual, marker) digest pair."""
    return compute_digest(ind_path), compute_digest(snp_path)


def check_integrity(
    geno_path: Path | str,
    ind_path: Path | str,
    snp_path: Path | str,
    strict: bool = False,
) -> IntegrityReport:
    """Check that a *.geno header embeds the digests of the given tables.

    By default each digest only has to appear somewhere in the header line, which
    is how existing files are matched. With strict=True the digests must equal
    the header's hash fields exactly.

    Raises:
        FileNotFoundError: If any of the three files doesn't exist
    """
    header = parse_geno_header(read_header_line(geno_path))
    ind_digest, snp_digest = digests_for(ind_path, snp_path)
    ind_hex = format_digest(ind_digest)
    snp_hex = format_digest(snp_digest)

    if strict:
        ind_found = header.ind_hash == ind_hex
        snp_found = header.snp_hash == snp_hex
    else:
        ind_found = ind_hex in header.line
        snp_found = snp_hex in header.line

    report = IntegrityReport(
        header=header,
        ind_digest=ind_digest,
        snp_digest=snp_digest,
        ind_found=ind_found,
        snp_found=snp_found,
        distinct_paths=not _same_file(ind_path, snp_path),
        strict=strict,
    )
    if not report.is_valid:
        logger.debug("Integrity check failed for %s: %s", geno_path, "; ".join(report.problems))
    return report


def verify(
    geno_path: Path | str,
    ind_path: Path | str,
    snp_path: Path | str,
    strict: bool = False,
) -> bool:
    """Return True if the *.geno header authenticates the *.ind / *.snp pair."""
    return check_integrity(geno_path, ind_path, snp_path, strict=strict).is_valid


def check_dimensions(header: GenoHeader, n_individuals: int, n_markers: int) -> None:
    """Compare the header's declared counts with the loaded tables.

    Headers without declared counts are accepted.

    Raises:
        DimensionMismatchError: If the declared counts disagree
    """
    if not header.declares_dimensions:
        return

    declared = (header.n_individuals, header.n_markers)
    actual = (n_individuals, n_markers)
    if declared != actual:
        raise DimensionMismatchError(
            f"Header declares {declared[0]} individuals and {declared[1]} markers, "
            f"tables contain {actual[0]} individuals and {actual[1]} markers",
            declared=declared,
            actual=actual,
        )
