"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from backup_plans.loader import is_plan_candidate

# Test names end up in tmp_path, and the loader matches on the whole path, so
# no test name may contain "yml" or "yaml".


@pytest.fixture
def plans_dir(tmp_path):
    """Create an empty plans directory."""
    if is_plan_candidate(tmp_path):
        pytest.skip(f"temporary path {tmp_path} would match every file")
    directory = tmp_path / "plans"
    directory.mkdir()
    return directory


@pytest.fixture
def write_plan(plans_dir):
    """Return a helper that writes a plan file relative to plans_dir."""

    def _write(relative: str, content: str) -> Path:
        path = plans_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def full_plan_yaml():
    """Return a plan document using every section."""
    return """
name: ignored
target:
  database: shop
  host: db1.internal
  password: s3cret
  port: 5432
  username: backup
scheduler:
  cron: "0 2 * * *"
  retention: 7
  timeout: 3600
s3:
  bucket: backups
  accessKey: AKIA123
  api: S3v4
  secretKey: topsecret
  url: https://s3.example.com
smtp:
  server: smtp.example.com
  port: 587
  password: mailpass
  username: mailer
  from: backup@example.com
  to:
    - ops@example.com
    - dba@example.com
slack:
  url: https://hooks.slack.com/services/T000/B000/XXX
  channel: "#backups"
  username: backup-bot
"""


@pytest.fixture
def minimal_plan_yaml():
    """Return a plan document with only a target host and a cron schedule."""
    return """
target:
  host: db1
scheduler:
  cron: "0 2 * * *"
"""
