"""
API Models for request/response validation and Swagger documentation
"""

from flask_restx import fields
from werkzeug.datastructures import FileStorage

from tempshare.api.v1 import api

# =============================================================================
# Request Parsers
# =============================================================================

upload_parser = api.parser()
upload_parser.add_argument(
    "file", location="files", type=FileStorage, required=True, help="File to share"
)

# =============================================================================
# Response Models
# =============================================================================

upload_response = api.model(
    "UploadResponse",
    {
        "download_url": fields.String(
            description="Path to download the file",
            example="/files/download/3f2b9c1e-7a44-4d0b-9a55-2b0c1f6e8d21",
        ),
        "handle": fields.String(description="Entry id or one-time token, per handle mode"),
        "id": fields.String(description="Registry entry id"),
        "expires_at": fields.String(description="Hard expiry (ISO 8601, UTC)"),
    },
)

link_response = api.model(
    "LinkResponse",
    {
        "download_url": fields.String(description="One-time download path"),
        "token": fields.String(description="One-time download token"),
    },
)

stats_entry = api.model(
    "StatsEntry",
    {
        "id": fields.String(description="Registry entry id"),
        "filename": fields.String(description="Original filename"),
        "expiresAt": fields.String(description="Hard expiry (ISO 8601, UTC)"),
        "lastAccess": fields.String(description="Last download or upload time"),
        "downloads": fields.Integer(description="Completed download count", min=0),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short error title"),
        "message": fields.String(description="User-facing explanation"),
        "action": fields.String(description="Suggested next step"),
    },
)
