from __future__ import annotations

import argparse
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from .config import Plan
from .loader import PlanLoadError, load_plans, select_plans
from .logger import configure_logging, get_logger

DEFAULT_PLANS_DIR = "/etc/backup-plans"

LOG = get_logger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect backup plan definitions.")
    parser.add_argument(
        "--plans-dir",
        default=os.getenv("BACKUP_PLANS_DIR", DEFAULT_PLANS_DIR),
        help="Directory searched for plan YAML files.",
    )
    parser.add_argument(
        "--plan",
        action="append",
        help="Specific plan name to show (can be specified multiple times). Shows all plans when omitted.",
    )
    parser.add_argument(
        "--list-plans",
        action="store_true",
        help="Print plan names only and exit.",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Log level (default INFO).",
    )
    return parser.parse_args(argv)


def load_selected_plans(plans_dir: Path, names: Optional[List[str]]) -> List[Plan]:
    try:
        return select_plans(load_plans(plans_dir), names)
    except PlanLoadError as exc:
        raise SystemExit(f"Plan error: {exc}") from exc


def describe_plan(plan: Plan, now: datetime) -> str:
    target = f"{plan.target.host}/{plan.target.database}"
    try:
        next_run = plan.scheduler.next_run(now).isoformat()
    except ValueError:
        next_run = "invalid cron"
    destinations = ",".join(plan.destinations()) or "-"
    return f"{plan.name}\t{target}\t{plan.scheduler.cron}\t{next_run}\t{destinations}"


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    plans_dir = Path(args.plans_dir).expanduser()
    plans = load_selected_plans(plans_dir, args.plan)
    LOG.info("Loaded %d plan(s) from %s", len(plans), plans_dir)

    if args.list_plans:
        for plan in plans:
            print(plan.name)
        return 0

    now = datetime.now(timezone.utc)
    for plan in plans:
        print(describe_plan(plan, now))
    return 0


if __name__ == "__main__":
    sys.exit(main())
