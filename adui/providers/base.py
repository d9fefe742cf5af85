"""
Provider contract - the uniform async interface every backend implements,
plus the closed set of provider kinds.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..core import validation
from ..core.schema import (
    FormDataRecord,
    RecordStatus,
    ReferenceValue,
    SaveResult,
    WindowDefinition,
    WindowSummary,
)
from ..util.logging import logger


class ProviderKind(str, Enum):
    """Provider identity as a value rather than a class name."""
    MOCK = "mock"
    EXTERNAL = "external"
    JSON_FILE = "json-file"
    API = "api"

    @property
    def polls(self) -> bool:
        """Whether the connection monitor should poll this kind of provider."""
        return self in (ProviderKind.EXTERNAL, ProviderKind.API)


def new_record_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12].upper()}"


class DataProvider(ABC):
    """
    Abstract base class for all data providers.
    Every operation is a coroutine; implementations may suspend on I/O.
    """

    kind: ProviderKind

    def __init__(self):
        self._records: Dict[str, FormDataRecord] = {}

    @abstractmethod
    async def get_window_definition(self, window_id: str) -> WindowDefinition:
        """
        Fetch one window definition in canonical form.

        Raises:
            WindowNotFoundError: the provider does not know the window
            NetworkError: the backend could not be reached
        """
        pass

    @abstractmethod
    async def get_available_windows(self) -> List[WindowSummary]:
        pass

    @abstractmethod
    async def get_reference_values(self, reference_id: str) -> List[ReferenceValue]:
        """Values of an enumeration. Unknown ids yield an empty list, never an error."""
        pass

    @abstractmethod
    async def save_form_data(self, window_id: str, record: FormDataRecord) -> SaveResult:
        pass

    @abstractmethod
    async def get_form_data(self, window_id: str, record_id: Optional[str] = None) -> FormDataRecord:
        pass

    @abstractmethod
    async def is_connected(self) -> bool:
        """Real backend reachability, independent of what is cached."""
        pass

    def has_cached_data(self) -> bool:
        """Whether the provider can still serve something without its backend."""
        return False

    @property
    def name(self) -> str:
        return self.kind.value

    def get_status(self) -> Dict[str, Any]:
        """Get current status of this provider."""
        return {
            "kind": self.kind.value,
            "polls": self.kind.polls,
            "stored_records": len(self._records),
            "has_cached_data": self.has_cached_data()
        }

    # Shared in-memory record handling for providers without a persistence backend

    def _validate_for_save(self, window: Optional[WindowDefinition], record: FormDataRecord) -> SaveResult:
        """Drafts are accepted as-is; anything else must satisfy the window's field rules."""
        if window is None or record.metadata.status == RecordStatus.DRAFT:
            return SaveResult(success=True)

        issues = validation.validate_window(record.data, window)
        if issues:
            logger.log_validation_errors(window.id, [i.to_dict() for i in issues])
            return SaveResult(
                success=False,
                record_id=record.record_id,
                errors=issues,
                message=f"{len(issues)} field(s) failed validation"
            )
        return SaveResult(success=True)

    def _store_record(self, window_id: str, record: FormDataRecord, prefix: str) -> SaveResult:
        record_id = record.record_id or new_record_id(prefix)
        record.record_id = record_id
        record.window_id = window_id
        record.metadata.modified = datetime.now().isoformat()
        self._records[f"{window_id}/{record_id}"] = record

        logger.log_provider_operation(self.name, "save_form_data", window_id,
                                      details={"record_id": record_id, "field_count": len(record.data)})
        return SaveResult(
            success=True,
            record_id=record_id,
            message=f"Form data saved. Record ID: {record_id}"
        )

    def _load_record(self, window_id: str, record_id: Optional[str]) -> FormDataRecord:
        if record_id:
            stored = self._records.get(f"{window_id}/{record_id}")
            if stored is not None:
                return stored
        return FormDataRecord.new_draft(window_id, record_id)
