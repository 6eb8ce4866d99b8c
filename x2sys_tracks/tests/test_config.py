from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from x2sys_tracks.config import LonDomain, TrackReaderConfig, gmt_home, reset_home, resolve_home


@pytest.fixture(autouse=True)
def _fresh_home():
    reset_home()
    yield
    reset_home()


def test_home_prefers_x2sys_home() -> None:
    env = {"X2SYS_HOME": "/data/x2sys", "GMTHOME": "/opt/gmt"}
    assert resolve_home(env) == Path("/data/x2sys")


def test_home_falls_back_to_gmthome() -> None:
    assert resolve_home({"GMTHOME": "/opt/gmt"}) == Path("/opt/gmt/share/x2sys")


def test_home_is_cached_until_reset() -> None:
    first = resolve_home({"X2SYS_HOME": "/a"})
    assert resolve_home({"X2SYS_HOME": "/b"}) == first
    reset_home()
    assert resolve_home({"X2SYS_HOME": "/b"}) == Path("/b")


def test_gmt_home() -> None:
    assert gmt_home({}) is None
    assert gmt_home({"GMTHOME": "/opt/gmt"}) == Path("/opt/gmt")


class TestLonDomain:
    def test_positive(self) -> None:
        np.testing.assert_allclose(LonDomain.POSITIVE.adjust([-10.0, 0.0, 360.0, 370.0]), [350.0, 0.0, 0.0, 10.0])

    def test_signed(self) -> None:
        np.testing.assert_allclose(LonDomain.SIGNED.adjust([190.0, -190.0, 180.0, 10.0]), [-170.0, 170.0, -180.0, 10.0])

    def test_negative(self) -> None:
        np.testing.assert_allclose(LonDomain.NEGATIVE.adjust([10.0, 0.0, -10.0, 360.0]), [-350.0, 0.0, -10.0, 0.0])

    def test_scalar_and_nan(self) -> None:
        assert isinstance(LonDomain.POSITIVE.adjust(-1.0), float)
        assert np.isnan(LonDomain.SIGNED.adjust(np.nan))

    def test_tiny_negative_stays_in_range(self) -> None:
        pos = LonDomain.POSITIVE.adjust(-1e-20)
        assert 0.0 <= pos < 360.0
        out = LonDomain.POSITIVE.adjust(np.array([-1e-20, -1e-15]))
        assert np.all((out >= 0.0) & (out < 360.0))
        assert -180.0 <= LonDomain.SIGNED.adjust(-180.0 - 1e-13) < 180.0


class TestTrackReaderConfig:
    def test_defaults(self) -> None:
        cfg = TrackReaderConfig()
        assert cfg.initial_capacity == 2048
        assert cfg.lon_domain is None
        assert cfg.byteorder == "="

    @pytest.mark.parametrize("kwargs", [{"initial_capacity": 0}, {"byteorder": "big"}])
    def test_rejects_bad_values(self, kwargs) -> None:
        with pytest.raises(ValueError):
            TrackReaderConfig(**kwargs)
