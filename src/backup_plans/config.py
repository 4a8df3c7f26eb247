from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from croniter import CroniterBadCronError, croniter
from pydantic import BaseModel, ConfigDict, Field, model_validator


class _PlanSection(BaseModel):
    # Accept YAML scalars such as `port: 587` for string fields.
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # A `null` value behaves like a missing key.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


# --- Source ------------------------------------------------------------------


class Target(_PlanSection):
    """Connection details for the database a plan backs up."""

    database: str = ""
    host: str = ""
    password: str = Field(default="", repr=False)
    port: int = 0
    username: str = ""


class Scheduler(_PlanSection):
    """When the backup runs and how many archives are kept."""

    cron: str = ""
    retention: int = 0
    timeout: int = 0

    def next_run(self, reference: datetime) -> datetime:
        try:
            return croniter(self.cron, reference).get_next(datetime)
        except (CroniterBadCronError, ValueError) as exc:
            raise ValueError(f"Invalid cron expression '{self.cron}': {exc}") from exc


# --- Destinations and notifications -----------------------------------------


class S3(_PlanSection):
    bucket: str = ""
    access_key: str = Field(default="", alias="accessKey", repr=False)
    api: str = ""
    secret_key: str = Field(default="", alias="secretKey", repr=False)
    url: str = ""


class SMTP(_PlanSection):
    server: str = ""
    port: str = ""
    password: str = Field(default="", repr=False)
    username: str = ""
    from_address: str = Field(default="", alias="from")
    to: List[str] = Field(default_factory=list)


class Slack(_PlanSection):
    url: str = ""
    channel: str = ""
    username: str = ""


# --- Plan --------------------------------------------------------------------


class Plan(_PlanSection):
    """A single backup plan.

    ``target`` and ``scheduler`` are always populated, falling back to empty
    values. ``s3``, ``smtp`` and ``slack`` stay ``None`` unless the document
    configures them.
    """

    name: str = ""
    target: Target = Field(default_factory=Target)
    scheduler: Scheduler = Field(default_factory=Scheduler)
    s3: Optional[S3] = None
    smtp: Optional[SMTP] = None
    slack: Optional[Slack] = None

    def destinations(self) -> List[str]:
        return [section for section in ("s3", "smtp", "slack") if getattr(self, section) is not None]
