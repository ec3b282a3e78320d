"""
Location URL templates.

A template such as ``/online-[city_name]-coupons/category-[oct_name]-[oct_id]/``
is filled from a row using an ordered list of field names. Placeholders are
matched left to right; the names inside the brackets are not looked up, so
``fields`` decides which value lands in which slot.
"""

import re
from collections.abc import Mapping
from typing import Any, List, Sequence

from google_sitemap.errors import ConfigurationError

PLACEHOLDER_RE = re.compile(r"\[[^\[\]]+\]")


def get_field(row: Any, name: str) -> Any:
    """Read a field from a mapping row or an attribute-style row."""
    if isinstance(row, Mapping):
        if name not in row:
            raise ConfigurationError(f"Row has no field {name!r}")
        return row[name]
    try:
        return getattr(row, name)
    except AttributeError:
        raise ConfigurationError(f"Row has no field {name!r}") from None


class LocationTemplate:
    """Positional placeholder substitution for <loc> paths."""

    def __init__(self, template: str, fields: Sequence[str]):
        if not template:
            raise ConfigurationError("Location URL template cannot be empty")

        self.template = template
        self.fields: List[str] = list(fields)
        self._parts = PLACEHOLDER_RE.split(template)

        placeholder_count = len(self._parts) - 1
        if placeholder_count != len(self.fields):
            raise ConfigurationError(
                f"Template {template!r} has {placeholder_count} placeholder(s) "
                f"but {len(self.fields)} field name(s) were given"
            )

    @property
    def placeholders(self) -> List[str]:
        return PLACEHOLDER_RE.findall(self.template)

    def render(self, row: Any) -> str:
        """
        Substitute the row's field values into the template.

        Values are inserted as plain text; XML escaping happens when the
        location is serialized.
        """
        out = [self._parts[0]]
        for name, literal in zip(self.fields, self._parts[1:]):
            value = get_field(row, name)
            out.append("" if value is None else str(value))
            out.append(literal)
        return "".join(out)

    def __repr__(self) -> str:
        return f"LocationTemplate({self.template!r}, {self.fields!r})"
