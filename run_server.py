#!/usr/bin/env python3
"""
Development server launcher for the Safety Flows API.

Loads a local .env (for GEMINI_API_KEY and friends) before the app starts, so
a missing credential fails here at startup rather than on the first request.
For production, you'd use a proper ASGI server deployment.
"""

import logging
import os

import uvicorn
from dotenv import load_dotenv

if __name__ == "__main__":
    load_dotenv()
    log_level = os.getenv("SAFETYFLOWS_LOG_LEVEL", "info")
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        "safetyflows.api.main:app",
        host=os.getenv("SAFETYFLOWS_HOST", "127.0.0.1"),
        port=int(os.getenv("SAFETYFLOWS_PORT", "8000")),
        reload=os.getenv("SAFETYFLOWS_RELOAD", "").lower() in {"1", "true", "yes"},
        log_level=log_level,
    )
