"""Centralized configuration for the price comparison web app."""

import os
from pathlib import Path

_THIS_DIR = Path(__file__).parent

# Flask app settings (allow env overrides; default debug off for safety)
# Hosting platforms set PORT dynamically; fall back to FLASK_PORT or 5000 for local.
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "5000")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"

# Successful responses may be cached by browsers/CDNs for this long (seconds)
CACHE_MAX_AGE = int(os.getenv("CACHE_MAX_AGE", "900"))

# Set to "false" to disable the in-process result cache
RESULT_CACHE_ENABLED = os.getenv("RESULT_CACHE_ENABLED", "True").lower() == "true"

# Request event log
LOG_DIR = Path(os.getenv("WEB_LOG_DIR", str(_THIS_DIR / "logs")))
