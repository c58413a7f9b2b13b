import json
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from contextvars import ContextVar

# Context variables for correlation
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
provider_var: ContextVar[Optional[str]] = ContextVar('provider', default=None)
platform_var: ContextVar[Optional[str]] = ContextVar('platform', default=None)
stage_var: ContextVar[Optional[str]] = ContextVar('stage', default=None)

_CONTEXT_VARS = {
    'request_id': request_id_var,
    'provider': provider_var,
    'platform': platform_var,
    'stage': stage_var,
}
_CONTEXT_FIELDS = {
    'request_id': 'requestId',
    'provider': 'provider',
    'platform': 'platform',
    'stage': 'stage',
}


class SecretMasker:
    """Masks sensitive information in log messages."""

    def __init__(self):
        """Initialize secret masker with patterns."""
        self.patterns = [
            # key=value style credentials, including URL query parameters
            r'(?i)(token|apikey|api_key|key|secret|password|auth)[\s]*[:=][\s]*["\']?([a-zA-Z0-9\-_\.]{10,})["\']?',
            # Authorization headers
            r'(?i)(bearer)[\s]+([a-zA-Z0-9\-_\.]{20,})',
        ]

        self.compiled_patterns = [re.compile(pattern) for pattern in self.patterns]

    def mask_secrets(self, text: str) -> str:
        """Mask sensitive information in text."""
        if not text:
            return text

        masked_text = text

        for pattern in self.compiled_patterns:
            def replace_match(match):
                prefix = match.group(1)
                secret = match.group(2)
                # Keep first 4 and last 4 characters, mask the rest
                if len(secret) > 8:
                    masked_secret = secret[:4] + '*' * (len(secret) - 8) + secret[-4:]
                else:
                    masked_secret = '*' * len(secret)
                return f"{prefix}: {masked_secret}"

            masked_text = pattern.sub(replace_match, masked_text)

        return masked_text

    def mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Mask sensitive information in dictionary values."""
        if not data:
            return data

        masked_data = {}

        for key, value in data.items():
            if isinstance(value, str):
                masked_data[key] = self.mask_secrets(value)
            elif isinstance(value, dict):
                masked_data[key] = self.mask_dict(value)
            elif isinstance(value, list):
                masked_data[key] = [self.mask_dict(item) if isinstance(item, dict)
                                    else self.mask_secrets(item) if isinstance(item, str)
                                    else item for item in value]
            else:
                masked_data[key] = value

        return masked_data


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self):
        """Initialize formatter."""
        super().__init__()
        self.masker = SecretMasker()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'ts': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': self.masker.mask_secrets(record.getMessage()),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add correlation fields if available
        for name, var in _CONTEXT_VARS.items():
            value = var.get()
            if value:
                log_entry[_CONTEXT_FIELDS[name]] = value

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        fields = getattr(record, 'fields', None)
        if fields:
            log_entry['fields'] = self.masker.mask_dict(fields)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class CorrelationContext:
    """Context manager for correlation data.

    Only the values passed explicitly are set; everything else keeps the
    value of the enclosing context and is restored on exit.
    """

    def __init__(self, request_id: Optional[str] = None,
                 provider: Optional[str] = None,
                 platform: Optional[str] = None,
                 stage: Optional[str] = None):
        """Initialize correlation context."""
        self._values = {
            'request_id': request_id,
            'provider': provider,
            'platform': platform,
            'stage': stage,
        }
        self._tokens = {}

    def __enter__(self):
        """Set correlation context."""
        for name, value in self._values.items():
            if value is not None:
                self._tokens[name] = _CONTEXT_VARS[name].set(value)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Restore correlation context."""
        for name, token in self._tokens.items():
            _CONTEXT_VARS[name].reset(token)
        self._tokens = {}


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def current_request_id() -> str:
    """Return the request id bound by the caller, or a fresh one."""
    return request_id_var.get() or new_request_id()


def setup_logging(level: str = 'INFO',
                  log_file: Optional[str] = None) -> logging.Logger:
    """Setup structured logging for the ``tunebridge`` logger tree."""
    logger = logging.getLogger('tunebridge')
    logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers
    logger.handlers.clear()

    formatter = StructuredFormatter()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = 'tunebridge') -> logging.Logger:
    """Get logger with structured formatting."""
    return logging.getLogger(name)


def log_with_fields(logger: logging.Logger, level: str, message: str,
                    fields: Optional[Dict[str, Any]] = None, exc_info: bool = False, **kwargs):
    """Log message with additional fields."""
    merged = dict(fields or {})
    merged.update(kwargs)
    logger.log(getattr(logging, level.upper()), message,
               extra={'fields': merged} if merged else None, exc_info=exc_info)


# Convenience functions for common logging patterns
def log_probe_result(logger: logging.Logger, interface: str, outcome: str, **kwargs):
    """Log the outcome of probing one (platform, provider) pair."""
    platform, _, provider = interface.partition(':')
    with CorrelationContext(provider=provider, platform=platform, stage='probe'):
        log_with_fields(logger, 'DEBUG' if outcome == 'empty' else 'INFO',
                        f'Probe {interface}: {outcome}', {
                            'interface': interface,
                            'outcome': outcome,
                            **kwargs
                        })


def log_resolution_complete(logger: logging.Logger, outcome: str, attempts: int,
                            duration_ms: int, **kwargs):
    """Log completion of one resolution run."""
    with CorrelationContext(stage='complete'):
        log_with_fields(logger, 'INFO', f'Resolution {outcome}', {
            'outcome': outcome,
            'attempts': attempts,
            'duration_ms': duration_ms,
            **kwargs
        })


def log_error(logger: logging.Logger, message: str, error: Exception, **kwargs):
    """Log error with exception details."""
    log_with_fields(logger, 'ERROR', message, {
        'error_type': type(error).__name__,
        'error_message': str(error),
        **kwargs
    }, exc_info=True)
