"""Per-request scratch directories for agent runs."""

from __future__ import annotations

import shutil
import tempfile
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterator

from ..logging import get_logger

logger = get_logger("agent.workspace")


@contextmanager
def scratch_workspace(root: Path | None = None, *, prefix: str = "qtest-") -> Iterator[Path]:
    """Create a uniquely named directory and remove it on every exit path."""
    base = Path(root) if root is not None else Path(tempfile.gettempdir())
    base.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S%f")
    path = Path(tempfile.mkdtemp(prefix=f"{prefix}{stamp}-", dir=base))
    logger.debug("Created workspace %s", path)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.debug("Removed workspace %s", path)


__all__ = ["scratch_workspace"]
