from __future__ import annotations

import numpy as np
import pytest

from x2sys_tracks.analysis.distances import (
    KM_PR_DEG,
    DistanceMode,
    cumulative_distances,
    dummy_times,
    great_circle_dist,
)
from x2sys_tracks.errors import UnsupportedDistanceModeError


def test_planar_distance() -> None:
    d = cumulative_distances([0.0, 3.0, 3.0], [0.0, 4.0, 5.0])
    np.testing.assert_allclose(d, [0.0, 5.0, 6.0])


@pytest.mark.parametrize("mode", list(DistanceMode))
def test_starts_at_zero_and_never_decreases(mode: DistanceMode) -> None:
    rng = np.random.default_rng(7)
    lon = np.cumsum(rng.uniform(-0.5, 0.5, 50)) + 10.0
    lat = np.cumsum(rng.uniform(-0.5, 0.5, 50)) - 20.0
    d = cumulative_distances(lon, lat, mode)
    assert d.shape == (50,)
    assert d[0] == 0.0
    assert np.all(np.diff(d) >= 0.0)


def test_one_degree_along_equator() -> None:
    for mode in (DistanceMode.FLAT_EARTH, DistanceMode.GREAT_CIRCLE):
        d = cumulative_distances([0.0, 1.0], [0.0, 0.0], mode)
        assert d[1] == pytest.approx(KM_PR_DEG)
    assert KM_PR_DEG == pytest.approx(111.195, abs=1e-3)


def test_flat_earth_shrinks_longitude_with_latitude() -> None:
    d = cumulative_distances([0.0, 1.0], [60.0, 60.0], "flat-earth")
    assert d[1] == pytest.approx(0.5 * KM_PR_DEG, rel=1e-9)


def test_great_circle_quarter_meridian() -> None:
    assert great_circle_dist(0.0, 0.0, 0.0, 90.0) == pytest.approx(90.0)
    d = cumulative_distances([0.0, 0.0], [0.0, 90.0], 2)
    assert d[1] == pytest.approx(90.0 * KM_PR_DEG)


def test_short_inputs() -> None:
    assert cumulative_distances([], []).shape == (0,)
    np.testing.assert_array_equal(cumulative_distances([5.0], [5.0], "great_circle"), [0.0])


@pytest.mark.parametrize("mode", [3, -1, "spherical", True, 1.5])
def test_unknown_mode_raises(mode) -> None:
    with pytest.raises(UnsupportedDistanceModeError):
        cumulative_distances([0.0, 1.0], [0.0, 1.0], mode)


def test_mismatched_lengths_raise() -> None:
    with pytest.raises(ValueError):
        cumulative_distances([0.0, 1.0], [0.0])


def test_dummy_times() -> None:
    np.testing.assert_array_equal(dummy_times(4), [0.0, 1.0, 2.0, 3.0])
