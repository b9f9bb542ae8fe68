#!/usr/bin/env python3
"""
Development server with auto-reload and debug logging.
"""
import sys
import os
from pathlib import Path

backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))

os.chdir(backend_dir)

if __name__ == "__main__":
    import uvicorn

    # Import string format is required for reload
    uvicorn.run(
        "app.main:app",
        host="127.0.0.1",
        port=8765,
        reload=True,
        log_level="debug"
    )
