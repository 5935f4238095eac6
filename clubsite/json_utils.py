"""
Key-case conversion between Python field names and stored document keys.
"""

from __future__ import annotations

import re
from typing import Any

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def snake_to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def camel_to_snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def convert_keys(data: Any, converter) -> Any:
    """
    Recursively rename dict keys with `converter`.

    Only the keys of nested dicts are touched; list items are walked, scalar
    values are returned unchanged. Localized text maps ({"en": ..}) are
    unaffected since their keys are already single lowercase words.
    """
    if isinstance(data, dict):
        return {converter(k): convert_keys(v, converter) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item, converter) for item in data]
    return data
