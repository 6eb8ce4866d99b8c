"""Reader configuration and process-wide path settings.

Two concerns live here:

- :class:`TrackReaderConfig`, a frozen dataclass passed to the track readers
  (initial column capacity, longitude domain override, binary byte order).
- The definition-file home directory.  It is resolved once by
  :func:`resolve_home` and cached; callers pass the returned path explicitly
  to :func:`load_named_definition` and the MGG path resolver rather than
  reading environment variables deep inside the readers.
"""

from __future__ import annotations

import enum
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import numpy as np

logger = logging.getLogger(__name__)


class LonDomain(enum.IntEnum):
    """
    Longitude range a geographic x column is folded into.

    The integer values are the legacy ``geodetic`` codes.
    """

    POSITIVE = 0  # [0, 360)
    SIGNED = 1  # [-180, 180)
    NEGATIVE = 2  # (-360, 0]

    def adjust(self, lon):
        """Fold longitude(s) into this domain. NaN passes through unchanged."""
        arr = np.asarray(lon, dtype=np.float64)
        if self is LonDomain.POSITIVE:
            out = np.mod(arr, 360.0)
            out = np.where(out >= 360.0, out - 360.0, out)
        elif self is LonDomain.SIGNED:
            out = np.mod(arr + 180.0, 360.0)
            out = np.where(out >= 360.0, out - 360.0, out) - 180.0
        else:
            out = np.mod(arr, 360.0)
            out = np.where(out > 0.0, out - 360.0, out)
        if out.ndim == 0:
            return float(out)
        return out


@dataclass(frozen=True)
class TrackReaderConfig:
    """
    Configuration shared by the generic and legacy track readers.

    initial_capacity:
      Number of rows allocated per column before the first doubling.
    lon_domain:
      Override for the schema's longitude domain (None keeps the schema's).
    byteorder:
      numpy byte-order character for binary fields: "=" native, "<" little, ">" big.
    """
    initial_capacity: int = 2048
    lon_domain: Optional[LonDomain] = None
    byteorder: str = "="

    def __post_init__(self) -> None:
        if self.initial_capacity < 1:
            raise ValueError("initial_capacity must be >= 1")
        if self.byteorder not in ("=", "<", ">"):
            raise ValueError(f"byteorder must be one of '=', '<', '>', got {self.byteorder!r}")


_DEFAULT_HOME_POSIX = "/usr/local/gmt/x2sys"
_DEFAULT_HOME_WIN = r"C:\usr\local\gmt\x2sys"

_HOME: Optional[Path] = None


def resolve_home(env: Optional[Mapping[str, str]] = None) -> Path:
    """
    Return the directory holding ``<name>.def`` definition files.

    Resolution order on the first call: ``$X2SYS_HOME``, then
    ``$GMTHOME/share/x2sys``, then the platform default.  Later calls return
    the cached value until :func:`reset_home` is called.
    """
    global _HOME
    if _HOME is not None:
        return _HOME

    env = os.environ if env is None else env
    if env.get("X2SYS_HOME"):
        home = Path(env["X2SYS_HOME"])
    elif env.get("GMTHOME"):
        home = Path(env["GMTHOME"]) / "share" / "x2sys"
    elif sys.platform.startswith("win"):
        home = Path(_DEFAULT_HOME_WIN)
    else:
        home = Path(_DEFAULT_HOME_POSIX)

    logger.debug("x2sys home resolved to %s", home)
    _HOME = home
    return home


def reset_home() -> None:
    """Forget the cached home directory (next :func:`resolve_home` re-resolves)."""
    global _HOME
    _HOME = None


def gmt_home(env: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    """Return ``$GMTHOME`` as a path, or None when unset."""
    env = os.environ if env is None else env
    value = env.get("GMTHOME")
    return Path(value) if value else None


__all__ = [
    "LonDomain",
    "TrackReaderConfig",
    "resolve_home",
    "reset_home",
    "gmt_home",
]
