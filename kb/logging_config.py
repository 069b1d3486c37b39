"""Shared logging setup for the kb command-line entry points.

``configure_logging()`` is idempotent: if the root logger already has
handlers (pytest, an embedding host) it leaves them alone.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Union


def configure_logging(
    level: Union[int, str] = logging.INFO, log_file: Optional[str] = None
) -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # stderr, so stdout stays clean for reports and JSON
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
            fh = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            fh.setFormatter(formatter)
            root.addHandler(fh)
        except OSError:
            root.warning("Could not open log file %s; logging to console only", log_file)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)
