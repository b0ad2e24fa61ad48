"""ASGI entry point for gunicorn deployments."""

import sys
from pathlib import Path

# Add src directory to Python path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from leaguesight.api import app  # noqa: E402

__all__ = ["app"]

# Run with: gunicorn wsgi:app -k uvicorn.workers.UvicornWorker
