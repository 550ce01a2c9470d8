"""packedancestrymap: reader for EIGENSOFT PackedAncestryMap genotype files."""

__version__ = "0.1.0"

from .config import DecodeConfig, load_config
from .errors import (
    DimensionMismatchError,
    HandlerError,
    IntegrityMismatchError,
    MalformedRecordError,
    PackedAncestryMapError,
    ShortRecordError,
)
from .models import MISSING_GENOTYPE, DecodeResult, Individual, Marker
from .reader import aprocess_geno_rows, process_geno_rows

__all__ = [
    "__version__",
    "DecodeConfig",
    "DecodeResult",
    "DimensionMismatchError",
    "HandlerError",
    "Individual",
    "IntegrityMismatchError",
    "MISSING_GENOTYPE",
    "MalformedRecordError",
    "Marker",
    "PackedAncestryMapError",
    "ShortRecordError",
    "aprocess_geno_rows",
    "load_config",
    "process_geno_rows",
]
