"""
Logging setup and sanitizing helpers.

Request payloads pass through ``sanitize_dict`` before they are logged so
passwords and session tokens never reach the log output.
"""

import logging
from typing import Any, Dict

# Fields that should never be logged
SENSITIVE_FIELDS = {
    "password",
    "passwordhash",
    "password_hash",
    "confirm_password",
    "token",
    "access_token",
    "auth_token",
    "authorization",
    "session_id",
    "secret",
    "api_key",
}

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once per process."""
    global _configured
    if _configured:
        logging.getLogger().setLevel(level.upper())
        return
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    _configured = True


def sanitize_dict(data: Dict[str, Any], redact_text: str = "[REDACTED]") -> Dict[str, Any]:
    """
    Return a copy of ``data`` with sensitive values replaced.

    Keys are matched case-insensitively and nested dictionaries are sanitized
    recursively.

    Example:
        >>> sanitize_dict({"username": "sari", "password": "hunter2"})
        {'username': 'sari', 'password': '[REDACTED]'}
    """
    if not data:
        return data

    sanitized = {}
    for key, value in data.items():
        if key.lower() in SENSITIVE_FIELDS:
            sanitized[key] = redact_text
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, redact_text)
        else:
            sanitized[key] = value
    return sanitized
