"""
Error taxonomy shared by the adapter, the providers and the import pipeline.
"""

from typing import Any, Dict, List, Optional


class AduiError(Exception):
    """Base class for all errors raised by this package."""


class AdaptationError(AduiError):
    """An external window document could not be converted to the canonical model."""

    def __init__(self, message: str, tab_index: Optional[int] = None, field_index: Optional[int] = None):
        self.tab_index = tab_index
        self.field_index = field_index
        location = ""
        if tab_index is not None:
            location = f"tabs[{tab_index}]"
            if field_index is not None:
                location += f".fields[{field_index}]"
        super().__init__(f"{location}: {message}" if location else message)


class StructuralValidationError(AduiError):
    """A template is missing the required window/tab shape."""

    def __init__(self, message: str, invalid_tabs: List[Dict[str, Any]] = None):
        self.invalid_tabs = invalid_tabs or []
        super().__init__(message)


class TemplateParseError(AduiError):
    """Template content is not valid JSON."""


class NetworkError(AduiError):
    """Transport or HTTP failure talking to a backend."""

    def __init__(self, message: str, entity_id: Optional[str] = None, cause: Optional[BaseException] = None):
        self.entity_id = entity_id
        self.cause = cause
        super().__init__(message)


class ReferenceNotFoundError(AduiError):
    """No values are known for a reference id. Providers convert this to an empty list."""


class WindowNotFoundError(AduiError):
    """The provider has no window definition with the requested id."""

    def __init__(self, window_id: str, available: List[str] = None):
        self.window_id = window_id
        self.available = available or []
        message = f"Window definition not found: {window_id}"
        if available is not None:
            message += f". Available: [{', '.join(self.available)}]"
        super().__init__(message)


class ProviderConfigurationError(AduiError):
    """A provider could not be built from the given configuration."""


class TemplateImportError(AduiError):
    """The import pipeline aborted. `diagnostics` holds the full stage log."""

    def __init__(self, message: str, stage: str, diagnostics: List[Any]):
        self.stage = stage
        self.diagnostics = diagnostics
        super().__init__(f"Failed to import JSON template at stage '{stage}': {message}")


class DisplayLogicError(AduiError):
    """A display-logic expression could not be parsed."""
