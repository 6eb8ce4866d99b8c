"""Analysis package - along-track quantities computed from decoded tracks.

Distances are cumulative from the first point of the track (d[0] = 0) and
computed in one of three metrics: planar, flat-earth (cos(mean latitude)
corrected) or great-circle.  Geographic distances are in km.
"""

from .distances import (
    EARTH_RADIUS_M,
    KM_PR_DEG,
    DistanceMode,
    cumulative_distances,
    dummy_times,
    great_circle_dist,
)

__all__ = [
    "EARTH_RADIUS_M",
    "KM_PR_DEG",
    "DistanceMode",
    "cumulative_distances",
    "dummy_times",
    "great_circle_dist",
]
