"""Validation helpers shared by settings classes."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def _require_items(items: list[str], *, allow_empty: bool) -> list[str]:
    if not allow_empty and not items:
        raise ValueError("String list value must not be empty")
    return items


def parse_string_list(value: str | list[str], *, allow_empty: bool = False) -> list[str]:
    """
    Parse a list of strings from a settings value.

    A list passes through. A string is read as a JSON array when it starts
    with ``[`` and as comma-separated values otherwise; blank segments are
    skipped. Empty results are rejected unless allow_empty is set.
    """
    if isinstance(value, list):
        return _require_items(value, allow_empty=allow_empty)

    text = value.strip()
    if not text:
        raise ValueError("String list value must not be empty")

    if not text.startswith("["):
        return _require_items([part.strip() for part in text.split(",") if part.strip()], allow_empty=allow_empty)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON array: {e}") from e
    if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
        raise ValueError("JSON value must be an array of strings")
    return _require_items(parsed, allow_empty=allow_empty)


# settings fields whose env values go to parse_string_list untouched
_STRING_LIST_FIELDS = frozenset({"cors_origins"})


class StringListEnvSettingsSource(EnvSettingsSource):
    """
    Env source that hands string-list fields to their validators as raw strings.

    The stock source JSON-decodes list fields before validation, which rejects
    the comma-separated form.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in _STRING_LIST_FIELDS and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
