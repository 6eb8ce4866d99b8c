from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from x2sys_tracks.config import gmt_home
from x2sys_tracks.errors import FileOpenError, LegNotFoundError

logger = logging.getLogger(__name__)

MGG_SUFFIX = ".gmt"


def strip_leg_suffix(name: str) -> str:
    """Leg name without a trailing ``.gmt`` suffix."""
    return name[: -len(MGG_SUFFIX)] if name.endswith(MGG_SUFFIX) else name


@dataclass(frozen=True)
class MggPathResolver:
    """
    Resolve an MGG leg name to its ``<leg>.gmt`` file.

    The current directory is searched first (when ``search_cwd`` is True),
    then each entry of ``directories`` in order.
    """
    directories: Tuple[Path, ...] = ()
    search_cwd: bool = True

    @classmethod
    def from_paths_file(cls, path: str | Path, search_cwd: bool = True) -> "MggPathResolver":
        """
        Build a resolver from a directory list file (one directory per line).

        Blank lines and lines starting with ``#`` are ignored.
        """
        p = Path(path)
        try:
            text = p.read_text(errors="ignore")
        except OSError as e:
            raise FileOpenError(f"Could not open MGG path list {p}: {e}") from e
        dirs = []
        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            dirs.append(Path(line))
        return cls(directories=tuple(dirs), search_cwd=search_cwd)

    @classmethod
    def from_gmt_home(cls, home: Optional[str | Path] = None) -> "MggPathResolver":
        """Use ``<GMTHOME>/share/mgg/gmtfile_paths`` when it exists, else search only the cwd."""
        base = Path(home) if home is not None else gmt_home()
        if base is not None:
            paths_file = base / "share" / "mgg" / "gmtfile_paths"
            if paths_file.is_file():
                return cls.from_paths_file(paths_file)
            logger.debug("no MGG path list at %s", paths_file)
        return cls()

    def resolve(self, leg: str) -> Optional[Path]:
        """Path of ``<leg>.gmt`` or None when no search location has it."""
        fname = strip_leg_suffix(leg) + MGG_SUFFIX
        candidates = [Path(fname)] if self.search_cwd else []
        candidates += [d / fname for d in self.directories]
        for cand in candidates:
            if cand.is_file():
                return cand
        return None

    def find(self, leg: str) -> Path:
        """Like :meth:`resolve` but raise :class:`LegNotFoundError` when missing."""
        p = self.resolve(leg)
        if p is None:
            raise LegNotFoundError(f"Cannot find leg {strip_leg_suffix(leg)}")
        return p
