from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from x2sys_tracks.errors import LegNotFoundError, RecordDecodeError
from x2sys_tracks.ingest.definition import parse_definition
from x2sys_tracks.ingest.mgd77_decode import Mgd77Clock, Mgd77DecodeError, decode_mgd77_line
from x2sys_tracks.ingest.paths import MggPathResolver
from x2sys_tracks.ingest.readers_gmt import GmtReader, mgg_header_dtype, mgg_record_dtype
from x2sys_tracks.ingest.readers_mgd77 import Mgd77Reader
from x2sys_tracks.ingest.readers_track import read_file


def _mgg_bytes(year: int, n_rows: int, records) -> bytes:
    hdr = np.array([(year, n_rows, b"NOAA")], dtype=mgg_header_dtype())
    body = np.array(records, dtype=mgg_record_dtype())
    return hdr.tobytes() + body.tobytes()


MGG_RECORDS = [
    (10, 45_000_000, 200_000_000, (123, -32000, 4000)),
    (70, 45_500_000, 200_250_000, (-20, 35, -32000)),
]


def _resolver(tmp_path: Path) -> MggPathResolver:
    return MggPathResolver(directories=(tmp_path,), search_cwd=False)


def test_gmt_reader_decodes_header_and_records(tmp_path: Path) -> None:
    (tmp_path / "leg1.gmt").write_bytes(_mgg_bytes(1995, 2, MGG_RECORDS))
    tr = GmtReader(resolver=_resolver(tmp_path)).read("leg1")

    assert tr.name == "leg1"
    assert tr.year == 1995
    assert tr.agency == "NOAA"
    assert list(tr.df.columns) == ["time", "lon", "lat", "faa", "mag", "top"]
    np.testing.assert_allclose(tr.column("time"), [10.0, 70.0])
    np.testing.assert_allclose(tr.column("lon"), [200.0, 200.25])
    np.testing.assert_allclose(tr.column("lat"), [45.0, 45.5])
    np.testing.assert_allclose(tr.column("faa"), [12.3, -2.0])
    assert np.isnan(tr.column("mag")[0])
    assert tr.column("mag")[1] == 35.0
    assert tr.column("top")[0] == 4000.0
    assert np.isnan(tr.column("top")[1])
    assert set(tr.nan_columns) == {"mag", "top"}
    np.testing.assert_array_equal(tr.segment, [0, 0])


def test_gmt_reader_accepts_suffix(tmp_path: Path) -> None:
    (tmp_path / "leg1.gmt").write_bytes(_mgg_bytes(1995, 2, MGG_RECORDS))
    assert GmtReader(resolver=_resolver(tmp_path)).read("leg1.gmt").n_rows == 2


def test_gmt_reader_short_body_is_fatal(tmp_path: Path) -> None:
    (tmp_path / "short.gmt").write_bytes(_mgg_bytes(1995, 3, MGG_RECORDS))
    with pytest.raises(RecordDecodeError) as exc:
        GmtReader(resolver=_resolver(tmp_path)).read("short")
    assert exc.value.record_index == 2


def test_gmt_reader_short_header_is_fatal(tmp_path: Path) -> None:
    (tmp_path / "hdr.gmt").write_bytes(b"\x01\x00\x00\x00\x02")
    with pytest.raises(RecordDecodeError, match="n_records"):
        GmtReader(resolver=_resolver(tmp_path)).read("hdr")


def test_missing_leg(tmp_path: Path) -> None:
    with pytest.raises(LegNotFoundError):
        GmtReader(resolver=_resolver(tmp_path)).read("nowhere")


def test_resolver_from_paths_file(tmp_path: Path) -> None:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "leg2.gmt").write_bytes(_mgg_bytes(2001, 0, []))
    listing = tmp_path / "gmtfile_paths"
    listing.write_text(f"# MGG directories\n\n{data_dir}\n")

    resolver = MggPathResolver.from_paths_file(listing, search_cwd=False)
    assert resolver.directories == (data_dir,)
    assert resolver.resolve("leg2") == data_dir / "leg2.gmt"
    assert resolver.resolve("leg3") is None

    tr = GmtReader(resolver=resolver).read("leg2")
    assert tr.n_rows == 0
    assert tr.year == 2001


def test_read_file_dispatches_gmt(tmp_path: Path) -> None:
    (tmp_path / "leg1.gmt").write_bytes(_mgg_bytes(1995, 2, MGG_RECORDS))
    schema = parse_definition("time a y 0 1 0 %g\nlon a y 0 1 0 %g\nlat a y 0 1 0 %g", name="gmt")
    tr = read_file("leg1", schema, resolver=_resolver(tmp_path))
    assert tr.year == 1995


def _mgd77(
    rtype: str = "5",
    tz: str = "+05",
    date: str = "19900102",
    hour: str = "03",
    minutes: str = "30000",
    lat: str = "+4512345",
    lon: str = "-12054321",
    depth: str = "012346",
    mag: str = "-00123",
    faa: str = "00456",
) -> str:
    buf = [" "] * 120

    def put(start: int, text: str) -> None:
        buf[start:start + len(text)] = list(text)

    put(0, rtype)
    put(1, "TEST0001")
    put(9, tz)
    put(12, date)
    put(20, hour)
    put(22, minutes)
    put(27, lat)
    put(35, lon)
    put(51, depth)
    put(72, mag)
    put(103, faa)
    return "".join(buf) + "\n"


class TestMgd77Decode:
    def test_decodes_fields(self) -> None:
        clock = Mgd77Clock()
        rec = decode_mgd77_line(_mgd77(), clock)
        # 1990-01-02 03:30 local + 5 h
        assert rec.time == 86400 + 8 * 3600 + 1800
        assert rec.lat == 45_123_450
        assert rec.lon == -120_543_210
        assert rec.gmt == (456, -12, 1235)
        assert clock.first_year == 1990

    def test_time_counts_from_first_year(self) -> None:
        clock = Mgd77Clock()
        decode_mgd77_line(_mgd77(), clock)
        rec = decode_mgd77_line(_mgd77(tz="   ", date="19910101", hour="00", minutes="00000"), clock)
        assert rec.time == 365 * 86400
        assert clock.first_year == 1990

    def test_nines_are_missing(self) -> None:
        rec = decode_mgd77_line(_mgd77(depth="999999", mag="999999", faa="99999"), Mgd77Clock())
        assert rec.gmt == (-32000, -32000, -32000)

    def test_rejects_wrong_length(self) -> None:
        with pytest.raises(Mgd77DecodeError):
            decode_mgd77_line(_mgd77()[:100], Mgd77Clock())

    def test_rejects_bad_month(self) -> None:
        with pytest.raises(Mgd77DecodeError):
            decode_mgd77_line(_mgd77(date="19901302"), Mgd77Clock())


class TestMgd77Reader:
    def test_reads_data_records_and_skips_bad_lines(self) -> None:
        lines = [
            "4 header record\n",
            _mgd77(),
            "3 too short\n",
            _mgd77(date="19901302"),
            _mgd77(rtype="3", faa="99999"),
        ]
        tr = Mgd77Reader().read_lines(lines, name="cruise.a77")

        assert tr.n_rows == 2
        assert tr.year == 1990
        assert len(tr.warnings) == 2
        np.testing.assert_allclose(tr.column("lat"), [45.12345, 45.12345])
        np.testing.assert_allclose(tr.column("lon"), [-120.54321, -120.54321])
        np.testing.assert_allclose(tr.column("faa")[0], 45.6)
        assert np.isnan(tr.column("faa")[1])
        assert tr.column("mag")[0] == -12.0
        assert tr.column("top")[0] == 1235.0
        assert tr.nan_columns == ("faa",)

    def test_reads_file(self, tmp_path: Path) -> None:
        p = tmp_path / "cruise.a77"
        p.write_text(_mgd77() + _mgd77(hour="04"), encoding="ascii")
        tr = Mgd77Reader().read(p)
        assert tr.n_rows == 2
        assert tr.column("time")[1] - tr.column("time")[0] == 3600.0

    def test_no_records_gives_year_zero(self) -> None:
        tr = Mgd77Reader().read_lines(["1 nothing here\n"])
        assert tr.n_rows == 0
        assert tr.year == 0
        assert len(tr.warnings) == 1
