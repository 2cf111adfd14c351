"""
Logging setup and the ``log_*`` helpers used across the service.

Helpers take free-form keyword context that is appended to the message after
masking credentials, and pick up the current request id from the request
logging middleware when the caller does not pass one.
"""
import logging
import logging.handlers
from enum import Enum
from pathlib import Path
from typing import Optional


class LogCategory(str, Enum):
    """Logger names, one per area of the service."""
    APP = "app"
    REQUEST = "app.request"
    USER_ACTIONS = "app.user_actions"
    RECALL = "app.recall"
    MEDIA = "app.media"
    ERRORS = "app.errors"
    DB = "app.db"
    SECURITY = "app.security"


def get_logger(category: LogCategory) -> logging.Logger:
    return logging.getLogger(category.value)



DEFAULT_LOG_LEVEL = logging.INFO

# Fields that should be masked in logs
SENSITIVE_FIELDS = {
    'password',
    'token',
    'accesstoken',
    'authorization',
    'secret',
    'api_key',
    'apikey',
    'x-api-key',
    'immich_api_key',
    'database_url',
    'databaseurl',
    'postgres_password',
    'postgrespassword',
}


def _sanitize_data(data):
    """
    Sanitize data to mask sensitive fields.

    Recursively processes dictionaries, lists, and strings. For URLs, masks
    the password part of connection strings.
    """
    if data is None:
        return data

    if isinstance(data, dict):
        sanitized = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
                sanitized[key] = '***MASKED***'
            else:
                sanitized[key] = _sanitize_data(value)
        return sanitized

    if isinstance(data, (list, tuple)):
        return [_sanitize_data(item) for item in data]

    if isinstance(data, str):
        if '@' in data and '://' in data:
            try:
                scheme_part, rest = data.split('://', 1)
                if '@' in rest:
                    user_pass, host_part = rest.rsplit('@', 1)
                    if ':' in user_pass:
                        user, _ = user_pass.split(':', 1)
                        return f"{scheme_part}://{user}:***@{host_part}"
                    return f"{scheme_part}://{user_pass}@{host_part}"
            except (ValueError, IndexError):
                pass

        # Very long opaque strings are most likely bearer tokens
        if len(data) > 64 and all(c.isalnum() or c in '-_.' for c in data):
            return '***MASKED***'

        return data

    return data


def _resolve_log_level(level_value, default=DEFAULT_LOG_LEVEL):
    """Resolve string/integer log level inputs to a logging level."""
    if isinstance(level_value, str):
        candidate = level_value.strip()
        if not candidate:
            return default, True
        if candidate.isdigit():
            level_value = int(candidate)
        else:
            level_value = candidate.upper()
    try:
        return logging._checkLevel(level_value), False
    except (ValueError, TypeError):
        return default, True


def _get_settings():
    """Lazy import to avoid circular dependency with config module."""
    from app.core.config import settings
    return settings


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Third-party loggers that are only interesting when something goes wrong
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "fastapi", "alembic.runtime.migration")


def _build_handlers(log_dir: Optional[str], level: int):
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    handlers = [console_handler]

    log_file = None
    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        log_file = directory / "thisday.log"
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding='utf-8'
        ))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
    return handlers, log_file


def setup_logging():
    """Configure the root logger from ``LOG_LEVEL`` and ``LOG_DIR``. Safe to call again."""
    settings = _get_settings()
    resolved_level, used_default_level = _resolve_log_level(settings.log_level)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    handlers, log_file = _build_handlers(settings.log_dir, resolved_level)
    root_logger.setLevel(resolved_level)
    for handler in handlers:
        root_logger.addHandler(handler)

    for category in LogCategory:
        get_logger(category).setLevel(resolved_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = get_logger(LogCategory.APP)
    if used_default_level:
        logger.warning(
            "Invalid log level '%s' in configuration, falling back to INFO",
            settings.log_level
        )
    logger.info(
        "Logging configured - Level: %s, file: %s",
        logging.getLevelName(resolved_level),
        log_file or "disabled",
    )


def _current_request_id() -> Optional[str]:
    from app.middleware.request_logging import request_id_ctx
    request_id = request_id_ctx.get()
    return None if request_id == "unknown" else request_id


def _log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    request_id: Optional[str] = None,
    exc_info: bool = False,
    **kwargs,
):
    """Prefix the request id and append masked ``key=value`` context."""
    if not logger.isEnabledFor(level):
        return

    request_id = request_id or _current_request_id()
    log_message = f"[{request_id}] {message}" if request_id else message

    if kwargs:
        sanitized_kwargs = _sanitize_data(kwargs)
        extra_context = ", ".join(f"{k}={v}" for k, v in sanitized_kwargs.items())
        log_message = f"{log_message} ({extra_context})"

    logger.log(level, log_message, exc_info=exc_info)


def log_user_action(user_id: str, action: str, request_id: Optional[str] = None, **kwargs):
    """Audit trail of what a user did, e.g. ``log_user_action(uid, "deleted entry 42")``."""
    _log_with_context(get_logger(LogCategory.USER_ACTIONS), logging.INFO, f"User {user_id} {action}", request_id, **kwargs)


def log_info(message: str, request_id: Optional[str] = None, category: LogCategory = LogCategory.APP, **kwargs):
    _log_with_context(get_logger(category), logging.INFO, message, request_id, **kwargs)


def log_debug(message: str, request_id: Optional[str] = None, category: LogCategory = LogCategory.APP, **kwargs):
    _log_with_context(get_logger(category), logging.DEBUG, message, request_id, **kwargs)


def log_warning(message: str, request_id: Optional[str] = None, category: LogCategory = LogCategory.APP, **kwargs):
    _log_with_context(get_logger(category), logging.WARNING, message, request_id, **kwargs)


def log_error(error: Exception | str, request_id: Optional[str] = None, user_id: Optional[str] = None, **kwargs):
    """
    Log an error on the ``app.errors`` logger.

    A traceback is attached when ``error`` is an exception.
    """
    user_info = f" (user: {user_id})" if user_id else ""
    message = f"Error: {error}{user_info}"
    _log_with_context(
        get_logger(LogCategory.ERRORS),
        logging.ERROR,
        message,
        request_id,
        exc_info=isinstance(error, Exception),
        **kwargs,
    )
