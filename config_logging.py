#!/usr/bin/env python3
"""
Creative Review Configuration & Logging Module
==============================================
Centralized configuration, structured logging, and error types.

Every module obtains its logger through ``get_logger`` and raises the
exception classes defined here, so API handlers can turn them into a
uniform JSON error envelope.
"""

import os
import sys
import json
import logging
import uuid
import time
import functools
import threading
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Callable
from pathlib import Path
from dataclasses import dataclass, field
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler

# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================
DEFAULT_MAX_UPLOAD_MB = 500         # Per-request upload ceiling in megabytes
MAX_SAFE_UPLOAD_MB = 2048           # Anything above this is rejected by validate()
DEFAULT_MAX_FILES = 50              # Files accepted per upload request
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024  # 5MB max per log file
LOG_BACKUP_COUNT = 5                # Number of log backup files to keep
SLOW_CALL_SECONDS = 5.0             # Route calls slower than this are logged

DEFAULT_MAX_UPLOAD_BYTES = DEFAULT_MAX_UPLOAD_MB * 1024 * 1024
MAX_SAFE_UPLOAD_BYTES = MAX_SAFE_UPLOAD_MB * 1024 * 1024

__version__ = "1.2.0"
VERSION = __version__
APP_NAME = "CreativeReview"


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == 'true'


# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================

@dataclass
class AppConfig:
    """Application configuration with local-first defaults."""

    # Server settings
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False

    # Upload limits
    max_content_length: int = DEFAULT_MAX_UPLOAD_BYTES
    max_files_per_upload: int = DEFAULT_MAX_FILES

    # Paths
    data_dir: Path = field(default_factory=lambda: Path.cwd() / 'data')
    upload_dir: Path = field(default_factory=lambda: Path.cwd() / 'uploads')
    log_dir: Path = field(default_factory=lambda: Path.cwd() / 'logs')

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # Options: json, text
    log_to_file: bool = True
    log_to_console: bool = True

    def __post_init__(self):
        """Normalize paths and apply production overrides."""
        self.data_dir = Path(self.data_dir)
        self.upload_dir = Path(self.upload_dir)
        self.log_dir = Path(self.log_dir)

        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        if self.log_to_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        # Force debug=False in production environment
        if os.environ.get('CR_ENV', 'development').lower() == 'production':
            self.debug = False
            self.log_level = "WARNING"

    @property
    def projects_file(self) -> Path:
        """Location of the JSON document holding every project."""
        return self.data_dir / 'projects.json'

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Load configuration from environment variables."""
        cwd = Path.cwd()
        return cls(
            host=os.environ.get('CR_HOST', '127.0.0.1'),
            port=int(os.environ.get('CR_PORT', '3000')),
            debug=_env_flag('CR_DEBUG', 'false'),
            max_content_length=int(os.environ.get('CR_MAX_UPLOAD', str(DEFAULT_MAX_UPLOAD_BYTES))),
            max_files_per_upload=int(os.environ.get('CR_MAX_FILES', str(DEFAULT_MAX_FILES))),
            data_dir=Path(os.environ.get('CR_DATA_DIR', str(cwd / 'data'))),
            upload_dir=Path(os.environ.get('CR_UPLOAD_DIR', str(cwd / 'uploads'))),
            log_dir=Path(os.environ.get('CR_LOG_DIR', str(cwd / 'logs'))),
            log_level=os.environ.get('CR_LOG_LEVEL', 'INFO'),
            log_format=os.environ.get('CR_LOG_FORMAT', 'json'),
            log_to_file=_env_flag('CR_LOG_TO_FILE', 'true'),
            log_to_console=_env_flag('CR_LOG_TO_CONSOLE', 'true'),
        )

    def validate(self) -> tuple:
        """Validate configuration and return (is_valid, errors)."""
        errors = []

        if self.debug and os.environ.get('CR_ENV') == 'production':
            errors.append("Debug mode cannot be enabled in production")

        if self.max_content_length > MAX_SAFE_UPLOAD_BYTES:
            errors.append(f"Max content length exceeds safe limit ({MAX_SAFE_UPLOAD_MB}MB)")

        if self.max_files_per_upload < 1:
            errors.append("At least one file per upload must be allowed")

        if self.log_format not in ('json', 'text'):
            errors.append(f"Invalid log_format: {self.log_format}. Must be 'json' or 'text'")

        if not hasattr(logging, self.log_level.upper()):
            errors.append(f"Unknown log level: {self.log_level}")

        return (len(errors) == 0, errors)


# Global config instance
_config: Optional[AppConfig] = None

def get_config() -> AppConfig:
    """Get or create the global configuration."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config():
    """Reset the global configuration (for testing)."""
    global _config
    _config = None


# =============================================================================
# STRUCTURED LOGGING
# =============================================================================

class StructuredLogger:
    """Thread-safe structured logger with correlation IDs."""

    _local = threading.local()

    def __init__(self, name: str, config: Optional[AppConfig] = None):
        self.name = name
        self.config = config or get_config()
        self._setup_logger()

    def _setup_logger(self):
        """Configure the underlying Python logger."""
        self.logger = logging.getLogger(self.name)
        self.logger.setLevel(getattr(logging, self.config.log_level.upper(), logging.INFO))
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        self.logger.propagate = False

        if self.config.log_format == 'json':
            formatter = JsonFormatter()
        else:
            formatter = logging.Formatter(
                '%(asctime)s [%(levelname)s] %(name)s - %(message)s'
            )

        if self.config.log_to_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        # Rotating file handler keeps the log directory bounded
        if self.config.log_to_file:
            log_file = self.config.log_dir / f"{self.name.lower()}.log"
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_BACKUP_COUNT,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

        if not self.logger.handlers:
            self.logger.addHandler(logging.NullHandler())

    @classmethod
    def set_correlation_id(cls, correlation_id: str):
        """Set correlation ID for current thread."""
        cls._local.correlation_id = correlation_id

    @classmethod
    def get_correlation_id(cls) -> str:
        """Get correlation ID for current thread."""
        correlation_id = getattr(cls._local, 'correlation_id', None)
        if not correlation_id:
            correlation_id = cls.new_correlation_id()
        return correlation_id

    @classmethod
    def new_correlation_id(cls) -> str:
        """Generate and set a new correlation ID."""
        correlation_id = str(uuid.uuid4())[:12]
        cls.set_correlation_id(correlation_id)
        return correlation_id

    def _extra(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return {'correlation_id': self.get_correlation_id(), **fields}

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self.logger.debug(message, extra=self._extra(kwargs))

    def info(self, message: str, **kwargs):
        """Log info message."""
        self.logger.info(message, extra=self._extra(kwargs))

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self.logger.warning(message, extra=self._extra(kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs):
        """Log error message with optional exception info."""
        self.logger.error(message, exc_info=exc_info, extra=self._extra(kwargs))

    def exception(self, message: str, **kwargs):
        """Log exception with full traceback."""
        self.error(message, exc_info=True, **kwargs)

    @contextmanager
    def log_operation(self, operation: str, **context):
        """Context manager for logging operation start/end with timing."""
        start_time = time.time()
        self.debug(f"{operation} started", operation=operation, status='started', **context)
        try:
            yield
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self.error(f"{operation} failed: {e}", operation=operation, status='failed',
                       duration_ms=round(duration_ms, 2), exc_info=True, **context)
            raise
        duration_ms = (time.time() - start_time) * 1000
        self.info(f"{operation} completed", operation=operation, status='completed',
                  duration_ms=round(duration_ms, 2), **context)


_RESERVED_RECORD_KEYS = frozenset((
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'thread', 'threadName', 'exc_info', 'exc_text',
    'message', 'taskName', 'asctime',
))


class JsonFormatter(logging.Formatter):
    """JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.exc_info:
            log_data['traceback'] = self.formatException(record.exc_info)

        # Add extra fields
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


# Factory function for getting loggers
def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name, get_config())


# =============================================================================
# ERROR HANDLING
# =============================================================================

class CreativeReviewError(Exception):
    """Base exception for Creative Review."""

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR",
                 status_code: int = 500, details: Optional[Dict] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API response dict."""
        return {
            'success': False,
            'error': {
                'code': self.code,
                'message': self.message,
                'details': self.details
            }
        }


class ValidationError(CreativeReviewError):
    """Input validation error."""
    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400,
                         details={'field': field, **kwargs})


class InvalidEditError(ValidationError):
    """An edit was recorded without an author on an already-ingested field."""
    def __init__(self, message: str = "An author is required to edit existing text", **kwargs):
        super().__init__(message, **kwargs)
        self.code = "INVALID_EDIT"


class NotFoundError(CreativeReviewError):
    """Requested record does not exist."""
    def __init__(self, message: str, resource: Optional[str] = None, **kwargs):
        super().__init__(message, code="NOT_FOUND", status_code=404,
                         details={'resource': resource, **kwargs})


class FileError(CreativeReviewError):
    """File handling error."""
    def __init__(self, message: str, filename: Optional[str] = None, **kwargs):
        super().__init__(message, code="FILE_ERROR", status_code=400,
                         details={'filename': filename, **kwargs})


class ProcessingError(CreativeReviewError):
    """Unexpected processing failure."""
    def __init__(self, message: str, stage: Optional[str] = None, **kwargs):
        super().__init__(message, code="PROCESSING_ERROR", status_code=500,
                         details={'stage': stage, **kwargs})


def handle_errors(logger: Optional[StructuredLogger] = None):
    """Decorator translating low-level failures into CreativeReviewError."""
    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            _logger = logger or get_logger(func.__module__)
            try:
                return func(*args, **kwargs)
            except CreativeReviewError:
                raise
            except FileNotFoundError as e:
                _logger.error(f"File not found: {e}", exc_info=True)
                raise FileError(f"File not found: {e}")
            except PermissionError as e:
                _logger.error(f"Permission denied: {e}", exc_info=True)
                raise FileError(f"Permission denied: {e}")
            except ValueError as e:
                _logger.warning(f"Validation error in {func.__name__}: {e}")
                raise ValidationError(str(e))
            except Exception as e:
                _logger.exception(f"Unexpected error in {func.__name__}: {e}")
                raise ProcessingError(f"An unexpected error occurred: {type(e).__name__}")
        return wrapper
    return decorator


# =============================================================================
# FILE UTILITIES
# =============================================================================

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif', '.webp', '.svg', '.bmp')
VIDEO_EXTENSIONS = ('.mp4', '.mov', '.avi', '.webm', '.mkv', '.m4v', '.wmv')
DOCUMENT_EXTENSIONS = ('.pdf',)
ALLOWED_EXTENSIONS = IMAGE_EXTENSIONS + VIDEO_EXTENSIONS + DOCUMENT_EXTENSIONS


def validate_file_extension(filename: str, allowed: tuple = ALLOWED_EXTENSIONS) -> bool:
    """Validate file extension (case-insensitive)."""
    return filename.lower().endswith(allowed)
