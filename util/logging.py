"""
Structured logging for store, upload, auth and editor operations.
"""

import logging
from typing import Any, Dict, List


class StructuredLogger:
    """Structured logger for content admin operations."""

    def __init__(self, name: str = "content_admin"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status in ("failed", "rejected"):
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_form_operation(self, operation: str, form_type: str, status: str = "success",
                           details: Dict[str, Any] = None):
        """Log a store operation against one content type."""
        log_details = {"type": form_type}
        if details:
            log_details.update(sanitize_payload(details))

        self.log_operation(f"form.{operation}", status, log_details)

    def log_upload(self, filename: str, provider: str, status: str = "success", details: Dict[str, Any] = None):
        """Log a file upload to external storage."""
        log_details = {"filename": filename, "provider": provider}
        if details:
            log_details.update(details)

        self.log_operation("upload", status, log_details)

    def log_auth_event(self, event: str, email: str = None, success: bool = True):
        """Log login/logout and session checks without credentials."""
        log_details = {}
        if email:
            log_details["email"] = email
        self.log_operation(f"auth.{event}", "success" if success else "failed", log_details)

    def log_editor_event(self, event: str, form_type: str, details: Dict[str, Any] = None):
        """Log an editor-side list event."""
        log_details = {"type": form_type}
        if details:
            log_details.update(details)

        self.log_operation(f"editor.{event}", "ok", log_details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


def sanitize_payload(payload: Any, reveal_sensitive: bool = False, sensitive_fields: List[str] = None) -> Any:
    """Sanitize payloads for logging."""
    if sensitive_fields is None:
        sensitive_fields = ['password', 'token', 'secret', 'content']

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if reveal_sensitive or k not in sensitive_fields:
                sanitized[k] = sanitize_payload(v, reveal_sensitive, sensitive_fields)
            else:
                sanitized[k] = "[REDACTED]"
        return sanitized
    elif isinstance(payload, str):
        # Truncate long strings
        return payload[:100] + "..." if len(payload) > 100 else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, reveal_sensitive, sensitive_fields) for item in payload]
    else:
        return payload


# Global logger instance
logger = StructuredLogger()
