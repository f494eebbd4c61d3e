"""
Entrypoint module for uvicorn.

Run as:

    uvicorn resource_monitor.main:app --reload
"""

import logging

from resource_monitor.api import app  # noqa: F401  (FastAPI app)
from resource_monitor.config import get_settings

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
