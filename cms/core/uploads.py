"""
File uploads to external storage.

The FTP provider is the production path; the local provider writes into a
directory served by the API and is used for development and tests.
"""

import ftplib
import io
import time
import uuid
from pathlib import Path

from util.logging import logger
from . import config
from .schema import PendingUpload


class UploadError(Exception):
    """Custom exception for upload failures."""
    pass


def _stored_filename(filename: str) -> str:
    safe_name = Path(filename or "upload").name.replace(" ", "_")
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{safe_name}"


def resolve_media_url(path: str, domain: str = None) -> str:
    """Qualify a relative image/video path against the public storage domain."""
    if not path:
        return ""
    if path.startswith("http") or path.startswith("//"):
        return path
    domain = domain if domain is not None else config.FTP_DOMAIN
    if not domain:
        return path
    return f"https://{domain}/{path.lstrip('/')}"


class FtpUploadProvider:
    """Uploads files to the website's FTP host."""

    def __init__(self, host: str, user: str, password: str, domain: str, secure: bool = False):
        self.host = host
        self.user = user
        self.password = password
        self.domain = domain
        self.secure = secure

    def _connect(self) -> ftplib.FTP:
        client = ftplib.FTP_TLS() if self.secure else ftplib.FTP()
        client.connect(self.host)
        client.login(self.user or "", self.password or "")
        if self.secure:
            client.prot_p()
        return client

    def upload(self, upload: PendingUpload) -> str:
        """Store the file and return its public URL."""
        filename = _stored_filename(upload.filename)
        try:
            client = self._connect()
            try:
                client.storbinary(f"STOR {filename}", io.BytesIO(upload.content))
            finally:
                client.close()
        except ftplib.all_errors as e:
            logger.log_upload(filename, "ftp", "failed", {"error": str(e)[:100]})
            raise UploadError("FTP upload failed") from e

        logger.log_upload(filename, "ftp", details={"size": upload.size})
        return f"https://{self.domain}/{filename}"


class LocalUploadProvider:
    """Writes files into a local directory served under url_prefix."""

    def __init__(self, upload_dir: str, url_prefix: str = "/uploads"):
        self.upload_dir = Path(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def upload(self, upload: PendingUpload) -> str:
        filename = _stored_filename(upload.filename)
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            (self.upload_dir / filename).write_bytes(upload.content)
        except OSError as e:
            logger.log_upload(filename, "local", "failed", {"error": str(e)[:100]})
            raise UploadError("Local upload failed") from e

        logger.log_upload(filename, "local", details={"size": upload.size})
        return f"{self.url_prefix}/{filename}"
