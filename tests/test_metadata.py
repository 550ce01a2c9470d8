"""Tests for *.snp and *.ind table parsing."""

import pytest

from packedancestrymap.errors import MalformedRecordError
from packedancestrymap.metadata import (
    parse_ind_line,
    parse_snp_line,
    read_ind_file,
    read_snp_file,
)
from packedancestrymap.models import Individual, Marker


class TestParseSnpLine:
    """Tests for single marker lines."""

    def test_parses_all_fields(self):
        marker = parse_snp_line("rs3094315  1  0.020130  752566  G  A")

        assert marker.name == "rs3094315"
        assert marker.chromosome == 1
        assert marker.genetic_position == pytest.approx(0.02013)
        assert marker.physical_position == 752566
        assert marker.ref == "G"
        assert marker.alt == "A"

    def test_tabs_and_runs_of_spaces(self):
        marker = parse_snp_line("rs1\t23 \t 0.0\t\t100   C   T")
        assert marker.chromosome == 23
        assert marker.physical_position == 100

    def test_alleles_optional(self):
        marker = parse_snp_line("rs1 1 0.0 100")
        assert marker.ref == "X"
        assert marker.alt == "X"

    def test_only_first_allele_character_kept(self):
        marker = parse_snp_line("rs1 1 0.0 100 AT G")
        assert marker.ref == "A"

    def test_too_few_fields(self):
        with pytest.raises(MalformedRecordError, match="expected at least 4 columns, got 3"):
            parse_snp_line("rs1 1 0.0")

    @pytest.mark.parametrize(
        "line,message",
        [
            ("rs1 chr1 0.0 100 A G", "invalid chromosome"),
            ("rs1 1 abc 100 A G", "invalid genetic position"),
            ("rs1 1 0.0 1.5e3 A G", "invalid physical position"),
            ("rs1 1 0.0 -5 A G", "must be non-negative"),
        ],
    )
    def test_unparseable_numbers(self, line, message):
        with pytest.raises(MalformedRecordError, match=message):
            parse_snp_line(line)

    def test_error_carries_location(self):
        with pytest.raises(MalformedRecordError) as exc_info:
            parse_snp_line("rs1 x 0.0 100", path="data.snp", line_num=12)

        assert exc_info.value.path == "data.snp"
        assert exc_info.value.line_num == 12
        assert str(exc_info.value).startswith("data.snp:12:")

    def test_malformed_record_is_value_error(self):
        with pytest.raises(ValueError):
            parse_snp_line("rs1")


class TestParseIndLine:
    def test_parses_fields(self):
        individual = parse_ind_line("I0001  M  Case")
        assert individual == Individual(sample_id="I0001", sex="M", label="Case")

    def test_too_few_fields(self):
        with pytest.raises(MalformedRecordError, match="expected 3 columns, got 2"):
            parse_ind_line("I0001 M")


class TestReadSnpFile:
    """Tests for whole marker tables."""

    def test_preserves_order_and_index(self, write_table):
        path = write_table(
            "data.snp",
            "rs3 2 0.0 300 A G\nrs1 1 0.0 100 C T\nrs2 1 0.0 200 G A\n",
        )

        markers = read_snp_file(path)

        assert isinstance(markers, tuple)
        assert [m.name for m in markers] == ["rs3", "rs1", "rs2"]
        assert [m.index for m in markers] == [0, 1, 2]

    def test_blank_lines_skipped(self, write_table):
        path = write_table("data.snp", "rs1 1 0.0 100 A G\n\n   \nrs2 1 0.0 200 A G\n")

        markers = read_snp_file(path)

        assert [m.name for m in markers] == ["rs1", "rs2"]
        assert markers[1].index == 1

    def test_surrounding_whitespace_trimmed(self, write_table):
        path = write_table("data.snp", "   rs1 1 0.0 100 A G   \r\n")
        assert read_snp_file(path)[0].alt == "G"

    def test_no_trailing_newline(self, write_table):
        path = write_table("data.snp", "rs1 1 0.0 100 A G\nrs2 1 0.0 200 A G")
        assert len(read_snp_file(path)) == 2

    def test_malformed_line_reports_line_number(self, write_table):
        path = write_table("data.snp", "rs1 1 0.0 100 A G\nrs2 1 0.0\n")

        with pytest.raises(MalformedRecordError) as exc_info:
            read_snp_file(path)

        assert exc_info.value.line_num == 2
        assert exc_info.value.path == str(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_snp_file(tmp_path / "missing.snp")

    def test_invalid_utf8_reported_with_location(self, tmp_path):
        path = tmp_path / "data.snp"
        path.write_bytes(b"rs1 1 0.0 100 A G\nrs\xff2 1 0.0 200 C T\n")

        with pytest.raises(MalformedRecordError, match="invalid UTF-8") as exc_info:
            read_snp_file(path)

        assert exc_info.value.line_num == 2

    def test_empty_file(self, write_table):
        assert read_snp_file(write_table("empty.snp", "")) == ()


class TestReadIndFile:
    def test_reads_individuals(self, write_table):
        path = write_table("data.ind", "I1 M Case\nI2 F Control\nI3 U Case\n")

        individuals = read_ind_file(path)

        assert [i.sample_id for i in individuals] == ["I1", "I2", "I3"]
        assert [i.label for i in individuals] == ["Case", "Control", "Case"]

    def test_long_sample_ids_accepted(self, write_table):
        sample_id = "S" * 60
        path = write_table("data.ind", f"{sample_id} U Pop\n")
        assert read_ind_file(path)[0].sample_id == sample_id

    def test_invalid_utf8_sample_id(self, tmp_path):
        path = tmp_path / "data.ind"
        path.write_bytes(b"I\xe91 M Case\n")
        with pytest.raises(MalformedRecordError, match="data.ind:1"):
            read_ind_file(path)

    def test_malformed_line(self, write_table):
        path = write_table("data.ind", "I1 M Case\nI2\n")
        with pytest.raises(MalformedRecordError, match="data.ind:2"):
            read_ind_file(path)


class TestModels:
    @pytest.mark.parametrize(
        "chromosome,supported",
        [(1, True), (22, True), (23, True), (24, True), (90, True), (91, True),
         (0, False), (25, False), (89, False), (92, False)],
    )
    def test_marker_supported_chromosomes(self, chromosome, supported):
        marker = Marker("rs1", chromosome, 0.0, 100)
        assert marker.is_supported is supported

    def test_marker_is_immutable(self):
        marker = Marker("rs1", 1, 0.0, 100)
        with pytest.raises(AttributeError):
            marker.name = "rs2"

    @pytest.mark.parametrize("sex,known", [("M", True), ("F", True), ("f", True), ("U", False)])
    def test_individual_known_sex(self, sex, known):
        assert Individual("I1", sex, "Pop").is_known_sex is known
