"""Console output for flag-service commands.

Status lines go through ``status``; flag records and evaluation results
have their own renderers so every command prints them the same way.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from flag_service.features.featureflags.schemas import FeatureFlagResponse

# level -> (marker, colour, stream is stderr)
_LEVELS: dict[str, tuple[str, str, bool]] = {
    "ok": ("[ok]", "green", False),
    "fail": ("[fail]", "red", True),
    "warn": ("[warn]", "yellow", False),
    "note": ("[..]", "blue", False),
}


def status(level: str, message: str) -> None:
    marker, colour, to_stderr = _LEVELS[level]
    click.secho(f"{marker} {message}", fg=colour, err=to_stderr)


def success(message: str) -> None:
    status("ok", message)


def error(message: str) -> None:
    status("fail", message)


def warning(message: str) -> None:
    status("warn", message)


def info(message: str) -> None:
    status("note", message)


def header(title: str) -> None:
    click.secho(f"\n{title}\n{'=' * len(title)}", fg="cyan", bold=True)


def flag_summary(flag: FeatureFlagResponse) -> None:
    """Print one flag as an indented block; optional fields only when set."""
    click.echo(f"  {flag.name} ({flag.version}, {flag.env})")
    click.secho(f"    Enabled: {flag.enabled}", fg="green" if flag.enabled else "red")
    details = [
        ("Rollout", f"{flag.percentage}%" if flag.percentage < 100 else None),
        ("Group", flag.group),
        ("Depends on", ", ".join(flag.dependencies) or None),
        ("Fallback", flag.fallback_flag),
        ("Rate limit", f"{flag.rate_limit}/window per user" if flag.rate_limit else None),
        ("Expires", flag.expires_at.isoformat() if flag.expires_at else None),
    ]
    for label, value in details:
        if value is not None:
            click.echo(f"    {label}: {value}")
    click.echo()


def evaluation_result(name: str, version: str, user_id: str | None, enabled: bool) -> None:
    label = f"{name} ({version})" + (f" for {user_id}" if user_id else "")
    if enabled:
        success(f"{label}: enabled")
    else:
        warning(f"{label}: disabled")
