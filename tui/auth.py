"""
Editor login - exchanges admin credentials for a store session.
"""

from typing import Union

from cms.core import config
from cms.editor.client import FormStoreClient, StoreRequestError
from util.logging import logger


def authenticate(client: FormStoreClient, email: str, password: str) -> bool:
    """
    Log in through the store API.

    Returns True if authentication successful, False otherwise.
    All authentication attempts are logged.
    """
    if not email.strip() or not password:
        logger.info("Editor authentication skipped: missing email or password")
        return False

    try:
        client.login(email.strip(), password)
    except StoreRequestError as e:
        log_auth_event(False, f"login rejected ({e.status_code})")
        return False
    except Exception as e:
        logger.error(f"Editor authentication failed: {e}")
        return False

    log_auth_event(True, "editor login")
    return True


def validate_editor_config() -> Union[dict, str]:
    """
    Validate editor configuration.

    Returns:
        dict with valid config if successful, error message string if invalid
    """
    api_url = config.EDITOR_API_URL
    if not api_url or not api_url.startswith(("http://", "https://")):
        error_msg = f"Editor configuration invalid: EDITOR_API_URL must be an http(s) URL, got {api_url!r}"
        logger.error(error_msg)
        return error_msg

    return {
        "api_url": api_url,
        "auth_required": config.AUTH_ENABLED,
        "message_timeout": config.MESSAGE_TIMEOUT_SEC,
    }


def log_auth_event(success: bool, details: str = ""):
    """Log authentication-related events."""
    logger.log_operation("editor.auth", "success" if success else "failed", {"details": details} if details else None)
