"""Process-wide logging setup for the CLI and the Streamlit page."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", log_path: Optional[str] = None) -> None:
    """Configure the root logger with a stream handler and an optional file handler.

    Safe to call more than once: Streamlit re-executes the page script on every
    interaction, so existing handlers are replaced rather than duplicated.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_path:
        p = Path(log_path)
        p.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(p, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
