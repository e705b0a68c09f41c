from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Install the root handler once. GAZEHEATMAP_LOG_LEVEL wins over ``level``."""
    name = (os.environ.get("GAZEHEATMAP_LOG_LEVEL", "") or level or "INFO").strip().upper()
    numeric = getattr(logging, name, None)
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric)
