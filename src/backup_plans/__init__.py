"""Backup plan discovery package."""

from __future__ import annotations

from .config import Plan, S3, SMTP, Scheduler, Slack, Target  # noqa: F401
from .loader import (  # noqa: F401
    DiscoveryError,
    EmptyResultError,
    ParseError,
    PlanLoadError,
    ReadError,
    UnknownPlanError,
    iter_plan_files,
    load_plan,
    load_plans,
    select_plans,
)
