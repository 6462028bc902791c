"""Options controlling a population run."""

from __future__ import annotations

from typing import Annotated, Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt

ConcurrencyLimit = Annotated[StrictInt, Field(ge=1)]


class PopulateConfig(BaseModel):
    """Options for populate_model / populate_models.

    Attributes:
        max_concurrency: Upper bound on store lookups in flight at once.
            None means unbounded.
        strict_references: When True, a non-null reference whose document is
            missing from the store fails the run with DanglingReferenceError.
            When False (the default) the missing document is simply absent
            from the result.

    Invalid values and unknown options raise pydantic's ValidationError,
    which is a ValueError.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_concurrency: ConcurrencyLimit | None = None
    strict_references: StrictBool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> PopulateConfig:
        """Build a config from a plain mapping."""
        return cls.model_validate(dict(data or {}))
