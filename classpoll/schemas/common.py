"""
Field types shared by request schemas.
"""
from typing import Annotated

from pydantic import BeforeValidator, StringConstraints


def _blank_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


# Required, trimmed, non-empty
Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
# Optional; "" and whitespace become None
OptionalText = Annotated[str | None, BeforeValidator(_blank_to_none)]
