"""
Row normalization for bulk prompt uploads.

Turns a header row plus a data row (or one JSON object) into a validated
BulkPromptInput. Column names are matched case-insensitively and in either
camelCase or snake_case, so "customUrl", "custom_url" and "Custom URL" are
the same column.
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .coercion import coerce_boolean, coerce_non_negative_int
from .errors import RowValidationError
from .models import REQUIRED_FIELDS, BulkPromptInput

# Model field name -> canonical column name shown to users
COLUMN_NAMES: Dict[str, str] = {
    "title": "title",
    "content": "content",
    "tag": "tag",
    "custom_url": "customUrl",
    "views": "views",
    "likes": "likes",
    "launch_gpt": "launchGpt",
    "launch_gemini": "launchGemini",
    "launch_claude": "launchClaude",
    "launch_grok": "launchGrok",
    "copied": "copied",
    "is_invisible": "isInvisible",
}

COUNTER_FIELDS = (
    "views",
    "likes",
    "launch_gpt",
    "launch_gemini",
    "launch_claude",
    "launch_grok",
    "copied",
)

_SEPARATORS = re.compile(r"[\s_\-]+")


def comparable_key(name: str) -> str:
    """Reduce a column name to a form shared by all its spellings."""
    return _SEPARATORS.sub("", (name or "").strip().lower())


class HeaderMap:
    """Column index lookup built once from a header row."""

    def __init__(self, header_row: Sequence[str]) -> None:
        self.columns: List[str] = [(header or "").strip() for header in header_row]
        self._index: Dict[str, int] = {}
        for index, header in enumerate(self.columns):
            key = comparable_key(header)
            if key and key not in self._index:
                self._index[key] = index

    def index_of(self, field: str) -> Optional[int]:
        return self._index.get(comparable_key(COLUMN_NAMES.get(field, field)))

    def has(self, field: str) -> bool:
        return self.index_of(field) is not None

    def cell(self, row: Sequence[str], field: str) -> str:
        index = self.index_of(field)
        if index is None or index >= len(row):
            return ""
        return (row[index] or "").strip()


def build_header_map(header_row: Sequence[str]) -> HeaderMap:
    return HeaderMap(header_row)


def missing_required_columns(header_map: HeaderMap) -> List[str]:
    return [field for field in REQUIRED_FIELDS if not header_map.has(field)]


def _build_input(values: Mapping[str, Any], row_number: int) -> BulkPromptInput:
    title = _text(values.get("title"))
    content = _text(values.get("content"))
    tag = _text(values.get("tag")).lower()

    missing = [
        field
        for field, value in (("title", title), ("content", content), ("tag", tag))
        if not value
    ]
    if missing:
        raise RowValidationError(row_number, missing)

    fields: Dict[str, Any] = {
        "title": title,
        "content": content,
        "tag": tag,
        "custom_url": _text(values.get("custom_url")) or None,
        "is_invisible": coerce_boolean(values.get("is_invisible"), False),
    }
    for counter in COUNTER_FIELDS:
        fields[counter] = coerce_non_negative_int(values.get(counter), 0)

    return BulkPromptInput(**fields)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize(
    header: Union[HeaderMap, Sequence[str]],
    data_row: Sequence[str],
    row_number: int,
) -> Optional[BulkPromptInput]:
    """Normalize one CSV data row.

    Returns None for a row whose cells are all blank. Raises
    RowValidationError when title, content or tag is missing.
    """
    header_map = header if isinstance(header, HeaderMap) else HeaderMap(header)

    if all(not (cell or "").strip() for cell in data_row):
        return None

    values = {field: header_map.cell(data_row, field) for field in COLUMN_NAMES}
    return _build_input(values, row_number)


def normalize_mapping(item: Mapping[str, Any], row_number: int) -> BulkPromptInput:
    """Normalize one prompt sent as a JSON object."""
    by_key = {}
    for key, value in item.items():
        comparable = comparable_key(str(key))
        if comparable not in by_key:
            by_key[comparable] = value

    values = {
        field: by_key.get(comparable_key(column))
        for field, column in COLUMN_NAMES.items()
    }
    return _build_input(values, row_number)
