"""
Entry point for running the FastAPI application.

Usage:
    python run.py              # Standard mode
    python run.py --reload     # Development mode with reload (Linux/Mac only)

Playwright needs an event loop with subprocess support. On Windows uvicorn's
reload mode switches to SelectorEventLoop, which has none, so do not use
--reload there.
"""

import sys
import uvicorn

from logout_service.config import get_settings

if __name__ == "__main__":
    reload_mode = "--reload" in sys.argv

    if sys.platform == "win32" and reload_mode:
        print("WARNING: --reload on Windows breaks Playwright (no subprocess support).")
        print("Restart without --reload if you see NotImplementedError.")

    settings = get_settings()
    # SIGINT/SIGTERM are handled by uvicorn: graceful shutdown, then exit.
    uvicorn.run(
        "logout_service.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=reload_mode,
        log_level="info",
    )
