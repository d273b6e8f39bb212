"""Per-user profile reads and partial updates."""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from numbers import Real
from typing import Any

from .auth_service import CredentialStore
from .errors import InvalidInput
from .models import Extracurricular, Profile

logger = logging.getLogger(__name__)

# Request field names -> Profile attributes. Both spellings are accepted.
FIELD_ALIASES = {
    "ecs": "extracurriculars",
    "extracurriculars": "extracurriculars",
    "interest": "interest",
    "extraInfo": "extra_info",
    "extra_info": "extra_info",
    "percentage": "academic_percentage",
    "academic_percentage": "academic_percentage",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def parse_percentage(value: Any) -> float:
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise InvalidInput("Percentage must be a number") from None
    if not _is_number(value):
        raise InvalidInput("Percentage must be a number")
    if not 0 <= value <= 100:
        raise InvalidInput("Percentage must be between 0 and 100")
    return float(value)


def parse_extracurriculars(value: Any) -> tuple[Extracurricular, ...]:
    if not isinstance(value, list):
        raise InvalidInput("Extracurriculars must be a list")
    parsed = []
    for item in value:
        if not isinstance(item, dict):
            raise InvalidInput("Each extracurricular needs a name and hours")
        name = item.get("name")
        hours = item.get("hours", 0)
        if not isinstance(name, str) or not name.strip():
            raise InvalidInput("Each extracurricular needs a name")
        if isinstance(hours, str):
            try:
                hours = float(hours.strip())
            except ValueError:
                raise InvalidInput(f"Hours for {name!r} must be a number") from None
        if not _is_number(hours) or not math.isfinite(hours) or hours < 0:
            raise InvalidInput(f"Hours for {name!r} must be a non-negative number")
        parsed.append(Extracurricular(name=name.strip(), hours=float(hours)))
    return tuple(parsed)


def _parse_text(value: Any, label: str) -> str:
    if not isinstance(value, str):
        raise InvalidInput(f"{label} must be a string")
    return value


def normalize_partial(partial: dict[str, Any] | None) -> dict[str, Any]:
    """Validate a partial update and map it onto Profile attribute names.

    Missing and null fields are dropped: they mean "leave unchanged".
    """
    if partial is None:
        return {}
    if not isinstance(partial, dict):
        raise InvalidInput("Profile update must be an object")

    changes: dict[str, Any] = {}
    for key, value in partial.items():
        attr = FIELD_ALIASES.get(key)
        if attr is None or value is None:
            continue
        if attr == "academic_percentage":
            changes[attr] = parse_percentage(value)
        elif attr == "extracurriculars":
            changes[attr] = parse_extracurriculars(value)
        elif attr == "interest":
            changes[attr] = _parse_text(value, "Interest").strip() or None
        else:
            changes[attr] = _parse_text(value, "Extra info")
    return changes


def profile_to_api(profile: Profile) -> dict[str, Any]:
    """Profile in the field names the web client uses."""
    return {
        "percentage": profile.academic_percentage,
        "interest": profile.interest,
        "ecs": [ec.to_dict() for ec in profile.extracurriculars],
        "extraInfo": profile.extra_info,
    }


class ProfileService:
    def __init__(self, credentials: CredentialStore) -> None:
        self._credentials = credentials

    def read(self, username: str) -> Profile:
        return self._credentials.get(username).profile

    def update(self, username: str, partial: dict[str, Any] | None) -> Profile:
        changes = normalize_partial(partial)
        user = self._credentials.replace_profile(
            username, lambda profile: replace(profile, **changes)
        )
        logger.info("Updated profile for %s (fields: %s)", username, ", ".join(sorted(changes)) or "none")
        return user.profile
