"""
Structured logging for provider, cache, import and connection operations.
Every module logs through the shared `logger` instance defined here.
"""

import logging
from typing import Any, Dict, List

class StructuredLogger:
    """Structured logger for provider operations, imports and connection health."""

    def __init__(self, name: str = "adui"):
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

        if status in ("failed", "error"):
            self.logger.error(message)
        elif status in ("warning", "degraded"):
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_provider_operation(self, provider: str, operation: str, entity_id: str = None,
                               status: str = "success", details: Dict[str, Any] = None):
        """Log a data provider call."""
        log_details = {"provider": provider}
        if entity_id is not None:
            log_details["entity_id"] = entity_id
        if details:
            log_details.update(details)

        self.log_operation(f"provider.{operation}", status, log_details)

    def log_cache_event(self, provider: str, key: str, event: str, details: Dict[str, Any] = None):
        """Log cache hit / miss / store / clear events."""
        log_details = {"provider": provider, "key": key}
        if details:
            log_details.update(details)

        self.log_operation(f"cache.{event}", "success", log_details)

    def log_adaptation(self, window_id: str, tab_count: int, field_count: int,
                       embedded_references: int, status: str = "success"):
        """Log a completed schema adaptation pass."""
        log_details = {
            "window_id": window_id,
            "tab_count": tab_count,
            "field_count": field_count,
            "embedded_references": embedded_references
        }
        self.log_operation("adapter.adapt", status, log_details)

    def log_import_stage(self, stage: str, success: bool, details: str, data: Dict[str, Any] = None):
        """Log one stage of the template import pipeline."""
        log_details = {"details": details}
        if data:
            log_details["data"] = sanitize_payload(data)

        self.log_operation(f"import.{stage}", "success" if success else "failed", log_details)

    def log_connection_transition(self, provider: str, old_state: str, new_state: str,
                                  details: Dict[str, Any] = None):
        """Log a connection monitor state change."""
        log_details = {
            "provider": provider,
            "from": old_state,
            "to": new_state
        }
        if details:
            log_details.update(details)

        status = "degraded" if new_state in ("offline", "error") else "success"
        self.log_operation("connection.transition", status, log_details)

    def log_fallback(self, from_provider: str, to_provider: str, degraded_for_sec: float):
        """Log an automatic provider fallback."""
        log_details = {
            "from_provider": from_provider,
            "to_provider": to_provider,
            "degraded_for_sec": round(degraded_for_sec, 2)
        }
        self.log_operation("connection.fallback", "warning", log_details)

    def log_validation_errors(self, window_id: str, errors: List[Any]):
        """Log form validation errors without field values."""
        sanitized_errors = []
        for error in errors:
            if isinstance(error, dict):
                sanitized_error = error.copy()
                for field in ['raw', 'value']:
                    if field in sanitized_error:
                        sanitized_error[field] = "[REDACTED]"
                sanitized_errors.append(sanitized_error)
            else:
                sanitized_errors.append(str(error)[:100])

        log_details = {
            "window_id": window_id,
            "errors": sanitized_errors,
            "error_count": len(sanitized_errors)
        }
        self.log_operation("validation.rejected", "warning", log_details)

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

# Global logger instance
logger = StructuredLogger()


def sanitize_payload(payload: Any, reveal_sensitive: bool = False, sensitive_fields: List[str] = None) -> Any:
    """Sanitize payloads for logging. Collected form values are redacted."""
    if sensitive_fields is None:
        sensitive_fields = ['raw', 'display', 'value', 'content', 'secret', 'password', 'api_key']

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
