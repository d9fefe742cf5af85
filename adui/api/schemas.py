"""
Metadata server schemas - response models for the development metadata server.
Window documents themselves are served in their external shape, unmodelled.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HealthResponse(BaseModel):
    status: str
    version: str
    window_count: int
    reference_count: int
    timestamp: datetime = Field(default_factory=datetime.now)


class WindowSummaryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: Optional[str] = None
    category: str = "General"
    is_available: bool = Field(default=True, alias="isAvailable")


class WindowListResponse(BaseModel):
    windows: List[WindowSummaryResponse]
    count: int


class ReferenceValueResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    key: str
    display: str
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    sort_order: Optional[int] = Field(default=None, alias="sortOrder")

    @field_validator('key', 'display', mode='before')
    @classmethod
    def coerce_to_text(cls, v):
        if v is None:
            raise ValueError('reference value key/display cannot be null')
        return str(v)


class ReferenceResponse(BaseModel):
    id: str
    name: str = "Reference"
    values: List[ReferenceValueResponse]
