from __future__ import annotations

import logging
import sys

LOG_FORMAT = "time=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())

    # idempotent under uvicorn --reload and repeated app construction
    for handler in root.handlers:
        if getattr(handler, "_ltp_service", False):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._ltp_service = True  # type: ignore[attr-defined]
    root.addHandler(handler)
