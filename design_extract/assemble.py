"""Combine finished category bundles into one ExtractionResult."""

from datetime import datetime
from typing import Any, Mapping, Optional

from design_extract.models import ExtractionResult

CATEGORY_FIELDS = {
    "logo": "logo",
    "colors": "colors",
    "typography": "typography",
    "spacing": "spacing",
    "borderRadius": "border_radius",
    "borders": "borders",
    "shadows": "shadows",
}


def now_iso() -> str:
    return datetime.now().isoformat()


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (tuple, list, dict)) and not value:
        return True
    return False


def assemble_result(url: str, categories: Mapping[str, Any], extracted_at: Optional[str] = None) -> ExtractionResult:
    """Pure merge. Categories that produced nothing are left unset."""
    fields = {}
    for category, value in categories.items():
        attr = CATEGORY_FIELDS.get(category)
        if attr is None:
            raise KeyError(f"Unknown category '{category}'")
        if _is_empty(value):
            continue
        fields[attr] = value
    return ExtractionResult(url=url, extracted_at=extracted_at or now_iso(), **fields)
