"""Expiration policy for uploaded archives.

Clients may ask for a lifetime such as ``"30m"``, ``"12h"`` or ``"3d"``.
The requested lifetime is clamped to ``[min_lifetime, max_lifetime]``; a
missing or unparseable request silently falls back to ``default_lifetime``.
Clamping produces an advisory message for the caller, falling back to the
default does not.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta

_REQUEST_PATTERN = re.compile(r"^([+-]?\d+)([mhd])$")
_UNIT_SECONDS = {"m": 60, "h": 3600, "d": 86400}


@dataclass(slots=True, frozen=True)
class ExpirationPolicy:
    default_lifetime: timedelta = timedelta(days=7)
    min_lifetime: timedelta = timedelta(minutes=10)
    max_lifetime: timedelta = timedelta(days=30)

    def __post_init__(self) -> None:
        if self.min_lifetime <= timedelta(0):
            raise ValueError("min_lifetime must be positive")
        if self.max_lifetime < self.min_lifetime:
            raise ValueError("max_lifetime must not be shorter than min_lifetime")
        if not self.min_lifetime <= self.default_lifetime <= self.max_lifetime:
            raise ValueError("default_lifetime must lie within [min_lifetime, max_lifetime]")


DEFAULT_POLICY = ExpirationPolicy()


def parse_lifetime_seconds(requested: str | None) -> int | None:
    """Return the requested lifetime in seconds, or ``None`` when unparseable."""
    if not requested:
        return None
    match = _REQUEST_PATTERN.match(requested.strip())
    if match is None:
        return None
    value, unit = match.groups()
    return int(value) * _UNIT_SECONDS[unit]


def compute_expiration(
    upload_time: datetime,
    requested: str | None = None,
    *,
    policy: ExpirationPolicy = DEFAULT_POLICY,
) -> tuple[datetime, str | None]:
    """Return ``(expires_at, advisory)`` for an upload made at ``upload_time``."""
    seconds = parse_lifetime_seconds(requested)
    if seconds is None:
        return upload_time + policy.default_lifetime, None

    # compare in whole seconds so huge requests never reach timedelta
    min_seconds = int(policy.min_lifetime.total_seconds())
    max_seconds = int(policy.max_lifetime.total_seconds())
    if seconds < min_seconds:
        return (
            upload_time + policy.min_lifetime,
            f"Expiration time too short. Minimum is {_describe(policy.min_lifetime)}, "
            "so it has been adjusted.",
        )
    if seconds > max_seconds:
        return (
            upload_time + policy.max_lifetime,
            f"Expiration time too long. Maximum is {_describe(policy.max_lifetime)}, "
            "so it has been adjusted.",
        )
    return upload_time + timedelta(seconds=seconds), None


def _describe(lifetime: timedelta) -> str:
    seconds = int(lifetime.total_seconds())
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds % size == 0:
            count = seconds // size
            return f"{count} {unit}" + ("" if count == 1 else "s")
    return f"{seconds} seconds"
