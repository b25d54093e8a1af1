#!/usr/bin/env python3
"""
PreviewDiff Configuration & Logging Module
==========================================
Centralized configuration, structured logging, and error taxonomy.

Version: module v1.0
"""

import os
import sys
import json
import logging
import uuid
import time
import functools
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Callable
from pathlib import Path
from dataclasses import dataclass, field
from contextlib import contextmanager
import threading

# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================
DEFAULT_SLOW_OPERATION_MS = 5000    # Matches the preview render timeout
DEFAULT_DIFF_TIMEOUT = 0.0          # 0 = unbounded, minimal edit script
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024  # 5MB max per log file
LOG_BACKUP_COUNT = 5                # Number of log backup files to keep

HIGHLIGHT_STYLES = ('default', 'high-contrast')
LOG_FORMATS = ('json', 'text')

__version__ = '1.0.0'


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == 'true'


def _env_number(name: str, default, cast: Callable):
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        return raw  # reported by validate()


# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================

@dataclass
class AppConfig:
    """Application configuration with safe defaults."""

    # Diff engine
    diff_timeout: float = DEFAULT_DIFF_TIMEOUT  # seconds, 0 disables the bound

    # Highlighting / presentation hints
    highlight_style: str = "default"  # Options: default, high-contrast
    sync_scroll: bool = True
    slow_operation_ms: int = DEFAULT_SLOW_OPERATION_MS

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # Options: json, text
    log_to_file: bool = False
    log_to_console: bool = True
    log_dir: Path = field(default_factory=lambda: Path(__file__).parent / 'logs')

    def __post_init__(self):
        """Normalize values loaded from the environment."""
        self.log_dir = Path(self.log_dir)
        if self.log_to_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Load configuration from environment variables."""
        defaults = cls()
        return cls(
            diff_timeout=_env_number('PD_DIFF_TIMEOUT', DEFAULT_DIFF_TIMEOUT, float),
            highlight_style=os.environ.get('PD_HIGHLIGHT_STYLE', 'default'),
            sync_scroll=_env_flag('PD_SYNC_SCROLL', 'true'),
            slow_operation_ms=_env_number('PD_SLOW_OPERATION_MS', DEFAULT_SLOW_OPERATION_MS, int),
            log_level=os.environ.get('PD_LOG_LEVEL', 'INFO'),
            log_format=os.environ.get('PD_LOG_FORMAT', 'text'),
            log_to_file=_env_flag('PD_LOG_TO_FILE', 'false'),
            log_dir=Path(os.environ.get('PD_LOG_DIR', str(defaults.log_dir))),
        )

    def validate(self) -> tuple:
        """Validate configuration and return (is_valid, errors)."""
        errors = []

        if not isinstance(self.diff_timeout, (int, float)):
            errors.append(f"Invalid diff_timeout: {self.diff_timeout!r}")
        elif self.diff_timeout < 0:
            errors.append("diff_timeout must be zero (unbounded) or positive")

        if self.highlight_style not in HIGHLIGHT_STYLES:
            errors.append(f"Invalid highlight_style: {self.highlight_style}. "
                          f"Must be one of {', '.join(HIGHLIGHT_STYLES)}")

        if not isinstance(self.slow_operation_ms, int):
            errors.append(f"Invalid slow_operation_ms: {self.slow_operation_ms!r}")
        elif self.slow_operation_ms <= 0:
            errors.append("slow_operation_ms must be positive")

        if self.log_format not in LOG_FORMATS:
            errors.append(f"Invalid log_format: {self.log_format}. Must be 'json' or 'text'")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            errors.append(f"Invalid log_level: {self.log_level}")

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
        level = logging.getLevelName(self.config.log_level.upper())
        self.logger.setLevel(level if isinstance(level, int) else logging.INFO)
        self.logger.handlers.clear()

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

        # File handler with rotation
        if self.config.log_to_file:
            from logging.handlers import RotatingFileHandler
            log_file = self.config.log_dir / f"{self.name.lower()}.log"
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_BACKUP_COUNT,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    @classmethod
    def set_correlation_id(cls, correlation_id: str):
        """Set correlation ID for current thread."""
        cls._local.correlation_id = correlation_id

    @classmethod
    def get_correlation_id(cls) -> str:
        """Get correlation ID for current thread."""
        return getattr(cls._local, 'correlation_id', None) or str(uuid.uuid4())[:8]

    @classmethod
    def new_correlation_id(cls) -> str:
        """Generate and set a new correlation ID."""
        correlation_id = str(uuid.uuid4())[:12]
        cls.set_correlation_id(correlation_id)
        return correlation_id

    def _extra(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        return {'correlation_id': self.get_correlation_id(), **kwargs}

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
    def log_operation(self, operation: str, slow_threshold_ms: Optional[float] = None, **context):
        """
        Context manager for logging operation start/end with timing.

        A warning is logged when the operation completes slower than
        slow_threshold_ms.
        """
        start_time = time.perf_counter()
        self.debug(f"{operation} started", operation=operation, status='started', **context)
        try:
            yield
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.info(f"{operation} completed in {duration_ms:.1f}ms", operation=operation,
                      status='completed', duration_ms=round(duration_ms, 2), **context)
            if slow_threshold_ms is not None and duration_ms > slow_threshold_ms:
                self.warning(f"Slow {operation}: {duration_ms:.0f}ms exceeds {slow_threshold_ms}ms",
                             operation=operation, duration_ms=round(duration_ms, 2), **context)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.error(f"{operation} failed: {e}", operation=operation, status='failed',
                       duration_ms=round(duration_ms, 2), exc_info=True, **context)
            raise


_RESERVED_RECORD_KEYS = frozenset((
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'thread', 'threadName', 'exc_info', 'exc_text',
    'message', 'taskName',
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
# ERROR HANDLING UTILITIES
# =============================================================================

class PreviewDiffError(Exception):
    """Base exception for PreviewDiff."""

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR",
                 details: Optional[Dict] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready error payload."""
        return {
            'success': False,
            'error': {
                'code': self.code,
                'message': self.message,
                'details': self.details
            }
        }


class ValidationError(PreviewDiffError):
    """Input validation error."""
    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, code="VALIDATION_ERROR",
                         details={'field': field, **kwargs})


class FileError(PreviewDiffError):
    """File handling error."""
    def __init__(self, message: str, filename: Optional[str] = None, **kwargs):
        super().__init__(message, code="FILE_ERROR",
                         details={'filename': filename, **kwargs})


class ProcessingError(PreviewDiffError):
    """Comparison processing error."""
    def __init__(self, message: str, stage: Optional[str] = None, **kwargs):
        super().__init__(message, code="PROCESSING_ERROR",
                         details={'stage': stage, **kwargs})


class HighlightError(PreviewDiffError):
    """Markup could not be annotated safely."""
    def __init__(self, message: str, side: Optional[str] = None, **kwargs):
        super().__init__(message, code="HIGHLIGHT_ERROR",
                         details={'side': side, **kwargs})


def handle_errors(logger: Optional[StructuredLogger] = None):
    """Decorator for standardized error handling."""
    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            _logger = logger or get_logger(func.__module__)
            try:
                return func(*args, **kwargs)
            except PreviewDiffError:
                raise  # Re-raise our custom errors
            except FileNotFoundError as e:
                _logger.error(f"File not found: {e}")
                raise FileError(f"File not found: {e.filename or e}", filename=e.filename)
            except PermissionError as e:
                _logger.error(f"Permission denied: {e}")
                raise FileError(f"Permission denied: {e.filename or e}", filename=e.filename)
            except ValueError as e:
                _logger.error(f"Validation error: {e}", exc_info=True)
                raise ValidationError(str(e))
            except Exception as e:
                _logger.exception(f"Unexpected error in {func.__name__}: {e}")
                raise ProcessingError(f"An unexpected error occurred: {type(e).__name__}",
                                      stage=func.__name__)
        return wrapper
    return decorator
