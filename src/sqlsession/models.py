"""Session configuration value."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SessionConfig(BaseModel):
    """Execution settings applied to every statement a session prepares.

    None for fetch_size or query_timeout means the driver default.
    """

    model_config = ConfigDict(frozen=True)

    fetch_size: int | None = Field(default=None, ge=0)
    query_timeout: int | None = Field(default=None, ge=0)
    tags: tuple[str, ...] = ()

    def replace(self, **changes: Any) -> "SessionConfig":
        """Return a validated copy with the given fields changed."""
        return SessionConfig.model_validate({**self.model_dump(), **changes})
