"""
Embedded reference store - enumeration values extracted from inline schema
during one adaptation pass, keyed by synthetic id.
"""

from typing import Any, Dict, List, Mapping, Optional

EMBEDDED_REF_SUFFIX = "_EMBEDDED_REF"


def embedded_reference_id(field_id: str) -> str:
    """Synthetic id for a reference declared inline on a field without its own id."""
    return f"{field_id}{EMBEDDED_REF_SUFFIX}"


def is_embedded_reference(reference_id: Optional[str]) -> bool:
    """Pure suffix check; never consults storage."""
    return bool(reference_id) and reference_id.endswith(EMBEDDED_REF_SUFFIX)


def reference_id_for(field_id: str, reference: Mapping[str, Any]) -> str:
    """Id under which a field's reference is stored: explicit id, else the synthetic one.

    Both the schema adapter and the import pipeline use this, so the two
    paths always agree on inline reference ids.
    """
    explicit = reference.get("id") if reference else None
    if explicit:
        return str(explicit)
    return embedded_reference_id(field_id)


class ReferenceResolver:
    """Per-adaptation store of embedded reference values.

    Create one per `SchemaAdapter.adapt` call and pass it explicitly; the
    adapter clears it before populating, so reusing an instance across
    documents never leaks values between them.
    """

    def __init__(self):
        self._values: Dict[str, List[Any]] = {}

    def clear(self) -> None:
        self._values.clear()

    def put(self, reference_id: str, values: List[Any]) -> None:
        self._values[reference_id] = list(values)

    def get(self, reference_id: str) -> Optional[List[Any]]:
        values = self._values.get(reference_id)
        return list(values) if values is not None else None

    @staticmethod
    def is_embedded(reference_id: str) -> bool:
        return is_embedded_reference(reference_id)

    def ids(self) -> List[str]:
        return list(self._values.keys())

    def stats(self) -> Dict[str, Any]:
        references = [{"id": ref_id, "value_count": len(values)} for ref_id, values in self._values.items()]
        return {
            "count": len(self._values),
            "total_values": sum(r["value_count"] for r in references),
            "references": references
        }

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, reference_id: str) -> bool:
        return reference_id in self._values
