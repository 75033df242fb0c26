#!/usr/bin/env python3
"""
Backend entrypoint: serve tubescript.main:app with uvicorn.

Host and port come from HOST / PORT (default 0.0.0.0:8000).
"""
import os
import sys

import uvicorn


def main() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    print(f"[Backend] Starting TubeScript backend on http://{host}:{port}")
    try:
        uvicorn.run(
            "tubescript.main:app",
            host=host,
            port=port,
            reload=False,
            log_level="info",
            access_log=True,
        )
    except KeyboardInterrupt:
        print("\n[Backend] Shutting down...")
        sys.exit(0)


if __name__ == "__main__":
    main()
