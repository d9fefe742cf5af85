"""
Development metadata server - serves external-shape window templates and
reference lists over the HTTP surface the external provider consumes.
"""

from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .schemas import (
    HealthResponse,
    ReferenceResponse,
    ReferenceValueResponse,
    WindowListResponse,
    WindowSummaryResponse,
)
from .templates import load_templates_dir, sample_references, sample_windows, window_summaries
from ..core.config import TEMPLATES_DIR, VERSION, debug_enabled
from ..util.logging import logger


class MetadataStore:
    """Window documents and shared reference lists held by the server."""

    def __init__(self, windows: Optional[Dict[str, Dict[str, Any]]] = None,
                 references: Optional[Dict[str, Dict[str, Any]]] = None):
        self.windows = windows if windows is not None else {}
        self.references = references if references is not None else {}

    @classmethod
    def from_config(cls, templates_dir: Optional[str] = TEMPLATES_DIR) -> 'MetadataStore':
        store = cls(sample_windows(), sample_references())
        if templates_dir:
            store.windows.update(load_templates_dir(templates_dir))
        return store

    def add_window(self, window_id: str, document: Dict[str, Any]) -> None:
        self.windows[window_id] = document

    def add_reference(self, reference_id: str, values, name: str = "Reference") -> None:
        self.references[reference_id] = {"id": reference_id, "name": name, "values": list(values)}


store = MetadataStore.from_config()

app = FastAPI(
    title="ADUI Metadata Server",
    version=VERSION,
    description="Serves window templates and reference lists for ADUI forms",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint():
    """Check server health."""
    return HealthResponse(
        status="healthy",
        version=VERSION,
        window_count=len(store.windows),
        reference_count=len(store.references)
    )


@app.get("/windows", response_model=WindowListResponse)
def list_windows_endpoint():
    summaries = [WindowSummaryResponse.model_validate(s) for s in window_summaries(store.windows)]
    return WindowListResponse(windows=summaries, count=len(summaries))


@app.get("/windows/{window_id}")
def get_window_endpoint(window_id: str) -> Dict[str, Any]:
    document = store.windows.get(window_id)
    if document is None:
        logger.log_operation("get_window", "failed", {"window_id": window_id})
        raise HTTPException(status_code=404, detail=f"Window '{window_id}' not found")
    return document


@app.get("/references/{reference_id}", response_model=ReferenceResponse)
def get_reference_endpoint(reference_id: str):
    reference = store.references.get(reference_id)
    if reference is None:
        raise HTTPException(status_code=404, detail=f"Reference '{reference_id}' not found")

    return ReferenceResponse(
        id=reference_id,
        name=reference.get("name", "Reference"),
        values=[ReferenceValueResponse.model_validate(v) for v in reference.get("values", [])]
    )
