"""Tests for session CSV export."""

import pytest


@pytest.fixture
def tenca_record():
    from birdsong_field.events import DetectionRecord

    return DetectionRecord(
        timestamp=1000,
        low_rel=0.5,
        mid_rel=0.3,
        high_rel=0.2,
        energy=120,
        species_key="tenca",
        common_name_es="Tenca",
        scientific_name="Mimus thenca",
        confidence=85,
    )


class TestFormatRow:
    """Test cases for row formatting."""

    def test_row_fields(self, tenca_record):
        """Test decimals, bare numbers and quoted names."""
        from birdsong_field.export import format_row, local_datetime

        row = format_row(tenca_record)

        assert row == [
            "1000",
            local_datetime(1000),
            "0.500",
            "0.300",
            "0.200",
            "120",
            "tenca",
            '"Tenca"',
            '"Mimus thenca"',
            "85",
        ]

    def test_three_decimal_rounding(self):
        from birdsong_field.events import DetectionRecord
        from birdsong_field.export import format_row

        record = DetectionRecord(5, 1 / 3, 1 / 6, 0.5, 90, "diuca", "Diuca", "Diuca diuca", 97)
        row = format_row(record)

        assert row[2:5] == ["0.333", "0.167", "0.500"]

    def test_embedded_quotes_are_doubled(self):
        from birdsong_field.export import quote

        assert quote('Chiuque "rayadito"') == '"Chiuque ""rayadito"""'

    def test_local_datetime_has_no_comma(self):
        from birdsong_field.export import local_datetime

        assert "," not in local_datetime(1_700_000_000_000)


class TestToCsv:
    """Test cases for CSV serialization."""

    def test_header(self):
        from birdsong_field.export import to_csv

        assert to_csv([]) == (
            "timestamp_ms,datetime_local,low_rel,mid_rel,high_rel,energy,"
            "species_key,common_name_es,scientific_name,confidence"
        )

    def test_single_row(self, tenca_record):
        from birdsong_field.export import local_datetime, to_csv

        lines = to_csv([tenca_record]).split("\n")

        assert len(lines) == 2
        assert lines[1] == (
            f'1000,{local_datetime(1000)},0.500,0.300,0.200,120,'
            f'tenca,"Tenca","Mimus thenca",85'
        )

    def test_rows_keep_detection_order(self, clock, make_event):
        """Test export is chronological regardless of UI ordering."""
        from birdsong_field.export import to_csv
        from birdsong_field.session import ListeningSession

        session = ListeningSession(clock=clock)
        for ts in (3_000, 1_000, 2_000):
            session.record(make_event(timestamp=ts))

        lines = to_csv(session.events).split("\n")[1:]

        assert [line.split(",")[0] for line in lines] == ["3000", "1000", "2000"]


class TestWriteCsv:
    """Test cases for writing the CSV file."""

    def test_write(self, tmp_path, tenca_record):
        from birdsong_field.export import to_csv, write_csv

        path = write_csv([tenca_record], tmp_path / "out" / "session.csv")

        assert path.exists()
        assert path.read_text(encoding="utf-8") == to_csv([tenca_record]) + "\n"
