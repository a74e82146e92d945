"""
main.py

Flask backend for temporary file sharing.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, redis, celery
  - Infrastructure: Redis server (only for REGISTRY_BACKEND=redis or
    SWEEP_RUNNER=celery)

Notes:
  - Endpoints under /files with Swagger docs at /docs
  - Registry is in memory by default; files live for FILE_TTL (10m)
  - Uses application factory pattern for better testability
"""

import logging
import os

from app_factory import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = create_app()

if __name__ == "__main__":
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 8000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    # The reloader would start a second process with its own registry
    app.run(host=host, port=port, debug=debug, threaded=True, use_reloader=False)
