from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

from x2sys_tracks.errors import FileCloseError, FileOpenError

logger = logging.getLogger(__name__)


@contextmanager
def open_file(path: str | Path, mode: str = "rb", **kwargs) -> Iterator[IO]:
    """
    Open ``path`` and close it on exit, translating failures.

    Open failures raise :class:`FileOpenError`, close failures raise
    :class:`FileCloseError`; neither is retried.
    """
    p = Path(path)
    try:
        fp = open(p, mode, **kwargs)
    except OSError as e:
        logger.error("could not open %s using mode %s: %s", p, mode, e)
        raise FileOpenError(f"Could not open {p} using mode {mode!r}: {e}") from e
    try:
        yield fp
    finally:
        try:
            fp.close()
        except OSError as e:
            logger.error("could not close %s: %s", p, e)
            raise FileCloseError(f"Could not close {p}: {e}") from e
