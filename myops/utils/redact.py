"""Simple data redaction helpers."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

REDACTED = "**REDACTED**"


def redact(data: Mapping[str, Any], keys: Iterable[str]) -> dict[str, Any]:
    """Return a copy of *data* with the values of sensitive *keys* hidden.

    Empty values are left alone so diagnostics still show that a secret is unset.
    """
    hidden = set(keys)
    return {k: (REDACTED if k in hidden and v else v) for k, v in data.items()}
