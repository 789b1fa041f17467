"""Render options and context files"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, model_validator


DEFAULT_START_DELIM = "%{"
DEFAULT_END_DELIM = "}%"


class RenderOptions(BaseModel):
    """Options accepted by the blocking entry point."""

    model_config = {"frozen": True}

    start_delim: str = Field(
        default=DEFAULT_START_DELIM, min_length=1, description="Enters a code section"
    )
    end_delim: str = Field(
        default=DEFAULT_END_DELIM, min_length=1, description="Returns to literal text"
    )

    @model_validator(mode="after")
    def check_distinct(self) -> "RenderOptions":
        if self.start_delim == self.end_delim:
            raise ValueError("start_delim and end_delim must differ")
        return self


def coerce_options(options: RenderOptions | Mapping[str, Any] | None) -> RenderOptions:
    """Accept a RenderOptions, a plain mapping, or None."""
    if options is None:
        return RenderOptions()
    if isinstance(options, RenderOptions):
        return options
    return RenderOptions.model_validate(dict(options))


def load_context_file(path: str | Path) -> dict[str, Any]:
    """Load extra context values from a YAML mapping."""
    p = Path(path)
    with open(p, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Context file must contain a mapping: {p}")
    return data
