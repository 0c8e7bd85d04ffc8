#!/usr/bin/env python3
"""Run the poker circuit API server."""

import sys
import os
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

# Load environment variables from main folder
from dotenv import load_dotenv
load_dotenv(Path(__file__).parent.parent / ".env")

if __name__ == "__main__":
    import uvicorn

    from poker_circuit.config import Settings

    settings = Settings()
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))

    print("=" * 60)
    print(settings.app_name.upper())
    print("=" * 60)
    print(f"Starting server on {host}:{port}")
    print(f"Sources: {', '.join(settings.source_names)}")
    print(f"Cache TTL: {settings.cache_ttl_minutes:g} min, file: {settings.cache_file or 'memory only'}")
    print(f"API docs: http://localhost:{port}/docs")
    print("=" * 60)

    uvicorn.run(
        "main:app",
        app_dir=str(Path(__file__).parent.parent / "backend"),
        host=host,
        port=port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True
    )
