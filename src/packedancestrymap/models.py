"""Data models for PackedAncestryMap datasets."""

from dataclasses import dataclass

# X is 23, Y is 24, mtDNA is 90 and XY is 91.
SUPPORTED_CHROMOSOMES = frozenset(range(1, 25)) | {90, 91}

UNKNOWN_ALLELE = "X"
UNKNOWN_SEX = "U"
KNOWN_SEXES = frozenset({"M", "F"})

MISSING_GENOTYPE = 3
GENOTYPE_CODES = (0, 1, 2, MISSING_GENOTYPE)


@dataclass(frozen=True)
class Marker:
    """One SNP from a *.snp marker table.

    Attributes:
        name: SNP identifier
        chromosome: Chromosome code (1-22, 23=X, 24=Y, 90=mtDNA, 91=XY)
        genetic_position: Genetic position in Morgans (0.0 when unknown)
        physical_position: Base-pair coordinate
        ref: Reference allele
        alt: Variant allele, "X" for unknown or monomorphic sites
        index: 0-based position of the marker in its table
    """

    name: str
    chromosome: int
    genetic_position: float
    physical_position: int
    ref: str = UNKNOWN_ALLELE
    alt: str = UNKNOWN_ALLELE
    index: int = 0

    @property
    def is_supported(self) -> bool:
        """Whether the chromosome code is one EIGENSOFT keeps."""
        return self.chromosome in SUPPORTED_CHROMOSOMES


@dataclass(frozen=True)
class Individual:
    """One sample from a *.ind individual table."""

    sample_id: str
    sex: str
    label: str

    @property
    def is_known_sex(self) -> bool:
        return self.sex.upper() in KNOWN_SEXES


@dataclass(frozen=True)
class GenoHeader:
    """Fields recovered from the first line of a packed *.geno file.

    The conventional layout is ``GENO <nind> <nsnp> <indhash> <snphash>``.
    Counts and hashes are None when the line does not follow it.
    """

    line: str
    magic: str | None = None
    n_individuals: int | None = None
    n_markers: int | None = None
    ind_hash: str | None = None
    snp_hash: str | None = None

    @property
    def declares_dimensions(self) -> bool:
        return self.n_individuals is not None and self.n_markers is not None


@dataclass
class DecodeResult:
    """Summary of a completed decode session."""

    geno_path: str
    n_individuals: int
    n_markers: int
    record_width: int
    markers_dispatched: int
    elapsed_seconds: float = 0.0
    verified: bool = True

    def to_dict(self) -> dict:
        return {
            "geno_path": self.geno_path,
            "n_individuals": self.n_individuals,
            "n_markers": self.n_markers,
            "record_width": self.record_width,
            "markers_dispatched": self.markers_dispatched,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "verified": self.verified,
        }
