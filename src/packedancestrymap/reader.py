"""Decode a PackedAncestryMap dataset and hand every marker row to a handler."""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path

from .decoder import PackedGenoReader
from .dispatcher import HandlerErrorPolicy, RowDispatcher, RowHandler
from .errors import IntegrityMismatchError
from .integrity import check_dimensions, check_integrity, parse_geno_header, read_header_line
from .metadata import read_ind_file, read_snp_file
from .models import DecodeResult

logger = logging.getLogger(__name__)


@dataclass
class DecodeConfig:
    """Configuration for a decode session.

    Attributes:
        max_concurrency: Cap on in-flight handler invocations (None = unbounded)
        on_handler_error: "collect" to dispatch every marker and report all
            handler failures together, "abort" to stop dispatching at the first
        strict_header: Require digests to equal the header hash fields exactly
            instead of appearing anywhere in the header line
        check_dimensions: Reject headers whose declared counts disagree with
            the tables
        verify_integrity: Run the header digest check before decoding
        log_level: Logging level name
    """

    max_concurrency: int | None = None
    on_handler_error: HandlerErrorPolicy = "collect"
    strict_header: bool = False
    check_dimensions: bool = True
    verify_integrity: bool = True
    log_level: str = "INFO"


async def aprocess_geno_rows(
    geno_path: Path | str,
    ind_path: Path | str,
    snp_path: Path | str,
    handler: RowHandler,
    config: DecodeConfig | None = None,
) -> DecodeResult:
    """Verify, load and decode a dataset, calling ``handler(row, marker, individuals)``
    once per marker.

    Handler calls run concurrently and in no particular order; all of them
    have completed when this returns. The individuals tuple is shared by every
    call and must not be modified.

    Raises:
        FileNotFoundError: If any of the three files doesn't exist
        IntegrityMismatchError: If the header does not authenticate the tables
        DimensionMismatchError: If the header's declared counts disagree with the tables
        MalformedRecordError: If a table line cannot be parsed
        ShortRecordError: If the *.geno file is truncated
        HandlerError: If any handler invocation raised
    """
    config = config or DecodeConfig()
    geno_path = Path(geno_path)
    start = time.perf_counter()

    if config.verify_integrity:
        report = check_integrity(geno_path, ind_path, snp_path, strict=config.strict_header)
        if not report.is_valid:
            raise IntegrityMismatchError(
                f"{geno_path.name} does not match its metadata: {'; '.join(report.problems)}",
                ind_digest=report.ind_hex,
                snp_digest=report.snp_hex,
            )
        header = report.header
        logger.info("Integrity check passed for %s", geno_path.name)
    else:
        header = parse_geno_header(read_header_line(geno_path))
        logger.warning("Skipping integrity check for %s", geno_path.name)

    markers = read_snp_file(snp_path)
    individuals = read_ind_file(ind_path)
    logger.info("Loaded %d markers and %d individuals", len(markers), len(individuals))

    unsupported = sum(1 for marker in markers if not marker.is_supported)
    if unsupported:
        logger.warning("%d markers have unsupported chromosome codes", unsupported)

    if config.check_dimensions:
        check_dimensions(header, len(individuals), len(markers))

    dispatcher = RowDispatcher(
        handler,
        individuals,
        max_concurrency=config.max_concurrency,
        on_handler_error=config.on_handler_error,
    )

    with PackedGenoReader(geno_path, len(individuals)) as geno_reader:
        geno_reader.check_size(len(markers))
        logger.debug("Record width for %s: %d bytes", geno_path.name, geno_reader.record_width)
        geno_reader.skip_header()
        dispatched = await dispatcher.run(markers, geno_reader.iter_rows(len(markers)))

    result = DecodeResult(
        geno_path=str(geno_path),
        n_individuals=len(individuals),
        n_markers=len(markers),
        record_width=geno_reader.record_width,
        markers_dispatched=dispatched,
        elapsed_seconds=time.perf_counter() - start,
        verified=config.verify_integrity,
    )
    logger.info(
        "Decoded %d markers from %s in %.2fs",
        result.markers_dispatched,
        geno_path.name,
        result.elapsed_seconds,
    )
    return result


def process_geno_rows(
    geno_path: Path | str,
    ind_path: Path | str,
    snp_path: Path | str,
    handler: RowHandler,
    config: DecodeConfig | None = None,
) -> DecodeResult:
    """Blocking wrapper around aprocess_geno_rows."""
    return asyncio.run(aprocess_geno_rows(geno_path, ind_path, snp_path, handler, config))
