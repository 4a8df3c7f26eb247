"""Backup plan discovery and parsing.

Every file below the plans directory whose path contains ``yml`` or
``yaml`` is parsed into a :class:`~backup_plans.config.Plan`. The plan takes
its name from the file, so ``plans/nightly.yaml`` becomes ``nightly``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

import yaml
from pydantic import ValidationError

from .config import Plan

LOG = logging.getLogger(__name__)

PLAN_PATH_MARKERS = ("yml", "yaml")

PathLike = Union[str, Path]

# Implicit YAML 1.1 types that would rewrite scalar text (`0123` as octal,
# `yes` as a bool, dates as datetimes). Null resolution is kept.
_TEXT_ONLY_TAGS = frozenset(
    "tag:yaml.org,2002:" + kind for kind in ("bool", "float", "int", "timestamp")
)


class PlanYAMLLoader(yaml.SafeLoader):
    """Safe loader that keeps non-null scalars as their source text."""


PlanYAMLLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in _TEXT_ONLY_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class PlanLoadError(Exception):
    """Base class for failures while loading backup plans."""

    def __init__(self, message: str, path: Optional[PathLike] = None) -> None:
        super().__init__(message)
        self.path = path


class DiscoveryError(PlanLoadError):
    """Raised when the plans directory cannot be walked."""


class ReadError(PlanLoadError):
    """Raised when a plan file cannot be read."""


class ParseError(PlanLoadError):
    """Raised when a plan file is not a valid plan document."""


class EmptyResultError(PlanLoadError):
    """Raised when no plan files were found."""


class UnknownPlanError(PlanLoadError):
    """Raised when a plan is requested by a name that was not loaded.

    No file is involved, so ``path`` is ``None``; ``names`` holds the
    missing plan names, sorted.
    """

    def __init__(self, message: str, names: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.names = sorted(names)


def iter_plan_files(directory: PathLike) -> Iterator[str]:
    """Yield every non-directory path below ``directory`` in lexical order.

    Entries of each directory are visited sorted by name and subdirectories
    are descended in place, so ``a.yml``, ``b/c.yml``, ``d.yml`` come out in
    that order. Symlinked directories are not followed.

    Raises:
        DiscoveryError: If any directory in the tree cannot be listed.
    """
    root = os.fspath(directory)
    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as exc:
        raise DiscoveryError(f"reading from {root} failed: {exc}", path=root) from exc

    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from iter_plan_files(entry.path)
        else:
            yield entry.path


def is_plan_candidate(path: PathLike) -> bool:
    # Substring match on the whole path, not an extension check.
    text = os.fspath(path)
    return any(marker in text for marker in PLAN_PATH_MARKERS)


def plan_name(path: PathLike) -> str:
    stem, _ = os.path.splitext(os.path.basename(os.fspath(path)))
    return stem


def load_plan(path: PathLike) -> Plan:
    """Read and parse a single plan file.

    Any ``name`` key inside the document is replaced by the name derived from
    the filename.

    Raises:
        ReadError: If the file cannot be read.
        ParseError: If the file is not YAML or does not match the plan schema.
    """
    path = os.fspath(path)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            text = fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadError(f"reading {path} failed: {exc}", path=path) from exc

    try:
        raw = yaml.load(text, Loader=PlanYAMLLoader)
    except yaml.YAMLError as exc:
        raise ParseError(f"parsing {path} failed: {exc}", path=path) from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ParseError(
            f"parsing {path} failed: expected a mapping at the top level, got {type(raw).__name__}",
            path=path,
        )

    document = {key: value for key, value in raw.items() if key != "name"}
    document["name"] = plan_name(path)
    try:
        return Plan.model_validate(document)
    except ValidationError as exc:
        raise ParseError(f"parsing {path} failed: {exc}", path=path) from exc


def load_plans(directory: PathLike) -> List[Plan]:
    """Load every backup plan found below ``directory``.

    The whole tree is walked before any file is read. The first failure
    aborts the load; no partial result is returned.

    Raises:
        DiscoveryError: If the directory tree cannot be walked.
        ReadError: If a plan file cannot be read.
        ParseError: If a plan file cannot be parsed.
        EmptyResultError: If no plan files were found.
    """
    root = os.fspath(directory)
    candidates = [path for path in iter_plan_files(root) if is_plan_candidate(path)]
    LOG.debug("Found %d plan candidate(s) in %s", len(candidates), root)

    plans: List[Plan] = []
    for path in candidates:
        plan = load_plan(path)
        LOG.debug("Loaded plan %s from %s", plan.name, path)
        plans.append(plan)

    if len(plans) < 1:
        raise EmptyResultError(f"No backup plans found in {root}", path=root)

    return plans


def select_plans(plans: Iterable[Plan], names: Optional[Iterable[str]] = None) -> List[Plan]:
    """Return the plans named in ``names``, keeping their load order.

    All plans are returned when ``names`` is empty.

    Raises:
        UnknownPlanError: If any requested name was not loaded.
    """
    plans = list(plans)
    if not names:
        return plans

    name_set = set(names)
    missing = name_set - {plan.name for plan in plans}
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise UnknownPlanError(f"Unknown plan(s) requested: {missing_str}", names=missing)
    return [plan for plan in plans if plan.name in name_set]
