"""Run the chat backend with uvicorn.

Usage:
    cd backend
    python scripts/serve.py

Host, port and debug reload come from CHAAT_HOST, CHAAT_PORT and CHAAT_DEBUG.
"""

import sys
from pathlib import Path

import uvicorn

BACKEND_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(BACKEND_DIR))

from chaat.core.config import settings  # noqa: E402

if __name__ == "__main__":
    uvicorn.run(
        "chaat.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        app_dir=str(BACKEND_DIR),
    )
