"""
API v1 - TempShare REST API

File upload, one-time links, downloads and registry stats, documented
with OpenAPI/Swagger.
"""

from flask import Blueprint
from flask_restx import Api

# Routes keep their historical /files paths, so the blueprint has no prefix
api_v1_bp = Blueprint("api_v1", __name__)

# Initialize Flask-RESTX API with Swagger documentation
api = Api(
    api_v1_bp,
    version="1.0",
    title="TempShare API",
    description="Temporary file sharing with expiring downloads and one-time links",
    doc="/docs",  # Swagger UI will be available at /docs
    contact="TempShare Team",
    license="MIT",
)

# Import namespaces after api is created to avoid circular imports
from .namespaces import files_ns  # noqa: E402

api.add_namespace(files_ns, path="/files")
