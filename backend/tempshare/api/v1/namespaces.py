"""
API Namespaces - Organized endpoint groups
"""

import mimetypes
from urllib.parse import quote

from flask import current_app, request, send_file
from flask_restx import Namespace, Resource

from tempshare.api.v1.models import (
    error_response,
    link_response,
    stats_entry,
    upload_parser,
    upload_response,
)
from tempshare.application.file_service import FileService
from tempshare.domain.errors import (
    BlobMissingError,
    EntryNotFoundError,
    ErrorCategory,
    StorageWriteError,
    create_error_response,
)

# =============================================================================
# Files Namespace - Upload, links, downloads and stats
# =============================================================================

files_ns = Namespace("files", description="Temporary file operations")


def content_disposition(filename: str) -> str:
    """
    Build an attachment Content-Disposition header for filename.

    Names that are not plain ASCII also get an RFC 5987 filename* parameter.
    """
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    try:
        escaped.encode("ascii")
    except UnicodeEncodeError:
        fallback = escaped.encode("ascii", "replace").decode("ascii")
        return (
            f'attachment; filename="{fallback}"; '
            f"filename*=UTF-8''{quote(filename, safe='')}"
        )
    return f'attachment; filename="{escaped}"'


@files_ns.route("/upload")
class FileUpload(Resource):
    """Upload a file"""

    @files_ns.doc("upload_file")
    @files_ns.expect(upload_parser)
    @files_ns.response(201, "Created", upload_response)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(500, "Storage Write Failed", error_response)
    def post(self):
        """
        Upload a file

        Stores the file for the configured lifetime and returns its download
        path. The handle is the entry id or a one-time token, depending on
        HANDLE_MODE.
        """
        uploaded = request.files.get("file")
        if uploaded is None or not uploaded.filename:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST,
                "Missing multipart file part 'file'",
                status_code=400,
            )

        try:
            file_service = current_app.container.resolve(FileService)
            result = file_service.upload(uploaded.stream, uploaded.filename)
            current_app.logger.info(
                f"Upload stored: {uploaded.filename} -> {result['id']}"
            )
            return result, 201

        except ValueError as e:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, str(e), status_code=400
            )
        except StorageWriteError as e:
            current_app.logger.error(f"Upload failed for {uploaded.filename}: {e}")
            return create_error_response(
                ErrorCategory.STORAGE_WRITE_FAILED, str(e), status_code=500
            )
        except Exception as e:
            current_app.logger.exception(f"Unexpected error in /files/upload: {str(e)}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR, str(e), status_code=500
            )


@files_ns.route("/link/<string:filename>")
@files_ns.param("filename", "Original filename of a live upload")
class FileLink(Resource):
    """Issue a one-time download link"""

    @files_ns.doc("generate_link")
    @files_ns.response(200, "Success", link_response)
    @files_ns.response(404, "File Not Found", error_response)
    def get(self, filename):
        """
        Generate a one-time download link

        Picks the newest live upload with this filename and binds a fresh
        token to it. The token works for exactly one download.
        """
        try:
            file_service = current_app.container.resolve(FileService)
            return file_service.generate_link(filename), 200

        except EntryNotFoundError:
            return create_error_response(
                ErrorCategory.FILE_NOT_FOUND,
                f"No live file named {filename}",
                status_code=404,
            )
        except Exception as e:
            current_app.logger.exception(f"Error issuing link for {filename}: {str(e)}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR, str(e), status_code=500
            )


@files_ns.route("/download/<string:handle>")
@files_ns.param("handle", "Entry id or one-time token")
class FileDownload(Resource):
    """Download a file"""

    @files_ns.doc("download_file")
    @files_ns.response(200, "File content")
    @files_ns.response(404, "File Not Found", error_response)
    def get(self, handle):
        """
        Download a file by handle

        Streams the file as an attachment under its original name. Unknown,
        expired and already used handles all answer 404.
        """
        try:
            file_service = current_app.container.resolve(FileService)
            entry, stream = file_service.download(handle)

        except EntryNotFoundError:
            return create_error_response(
                ErrorCategory.FILE_NOT_FOUND, "Unknown handle", status_code=404
            )
        except BlobMissingError as e:
            current_app.logger.error(f"Entry without blob: {e}")
            return create_error_response(
                ErrorCategory.FILE_NOT_FOUND, str(e), status_code=404
            )
        except Exception as e:
            current_app.logger.exception(f"Error serving download {handle}: {str(e)}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR, str(e), status_code=500
            )

        mimetype = (
            mimetypes.guess_type(entry.original_name)[0] or "application/octet-stream"
        )
        response = send_file(stream, mimetype=mimetype, max_age=0)
        response.headers["Content-Disposition"] = content_disposition(
            entry.original_name
        )
        return response


@files_ns.route("/stats")
class FileStats(Resource):
    """Registry statistics"""

    @files_ns.doc("get_stats")
    @files_ns.marshal_list_with(stats_entry, code=200)
    def get(self):
        """
        List live files

        One item per live upload with its expiry, last access and download
        count.
        """
        file_service = current_app.container.resolve(FileService)
        return file_service.stats(), 200
