"""Field selectors over exported hardware records.

A selector is either "." (the whole document) or a dotted walk through
nested objects, e.g. ".metadata.instance.userdata".
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from hegel.errors import ConfigurationError, NotFoundError

_KEY = re.compile(r"[A-Za-z0-9_-]+")


@dataclass(frozen=True)
class Selector:
    expression: str
    keys: tuple[str, ...]

    @classmethod
    def parse(cls, expression: str) -> Selector:
        if not isinstance(expression, str) or not expression.startswith("."):
            raise ConfigurationError(f"invalid selector {expression!r}: must start with '.'")
        if expression == ".":
            return cls(expression, ())
        keys = tuple(expression[1:].split("."))
        for key in keys:
            if not _KEY.fullmatch(key):
                raise ConfigurationError(f"invalid selector {expression!r}: bad key {key!r}")
        return cls(expression, keys)

    def apply(self, document: Any) -> Any:
        """Return the subtree the selector points at.

        Raises NotFoundError with an empty message when a key is missing or
        the walk hits something that is not an object.
        """
        value = document
        for key in self.keys:
            if not isinstance(value, dict) or key not in value:
                raise NotFoundError("")
            value = value[key]
        return value

    def relative_to(self, key: str) -> Selector:
        """Drop a leading key, for records that are already rooted there."""
        if not self.keys or self.keys[0] != key:
            return self
        rest = self.keys[1:]
        return Selector("." + ".".join(rest), rest)


def render_selection(value: Any) -> bytes:
    """Serialize a selected value: strings go out raw, anything else as JSON."""
    if isinstance(value, str):
        return value.encode()
    return json.dumps(value, separators=(",", ":")).encode()
