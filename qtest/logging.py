"""Logging helpers shared by the CLI, the watcher and the HTTP service."""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "qtest"

CONSOLE_FORMAT = "[qtest] %(levelname)s %(message)s"
SERVICE_FORMAT = "%(asctime)s [qtest] %(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(component: str | None = None) -> logging.Logger:
    """Logger for ``component`` (``qtest.<component>``), or the package root."""
    return logging.getLogger(f"{ROOT_LOGGER}.{component}" if component else ROOT_LOGGER)


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    timestamps: bool = False,
) -> logging.Logger:
    """Install console (and optional file) handlers on the ``qtest`` logger.

    ``timestamps`` switches the console format to the one used while serving,
    where lines interleave with uvicorn's access log.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.propagate = False

    # Watch mode and tests call this repeatedly.
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(SERVICE_FORMAT if timestamps else CONSOLE_FORMAT))
    root.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(level)
        sink.setFormatter(logging.Formatter(FILE_FORMAT))
        root.addHandler(sink)

    return root


__all__ = ["configure_logging", "get_logger"]
