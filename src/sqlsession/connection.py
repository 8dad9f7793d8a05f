"""Connection descriptor shared by sessions, executors and row views."""

from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, field_validator


class ConnectionAttributes(BaseModel):
    """Immutable description of a driver connection.

    driver_name selects the generated-key strategy. time_zone, when
    set, is attached to naive datetimes read from result rows.
    """

    model_config = ConfigDict(frozen=True)

    driver_name: str | None = None
    product_name: str | None = None
    product_version: str | None = None
    time_zone: str | None = None

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, v: str | None) -> str | None:
        """Reject unknown IANA zone names early."""
        if v is not None:
            try:
                ZoneInfo(v)
            except ZoneInfoNotFoundError as e:
                raise ValueError(f"Unknown time zone: {v}") from e
        return v

    @property
    def zone_info(self) -> tzinfo | None:
        return ZoneInfo(self.time_zone) if self.time_zone else None
