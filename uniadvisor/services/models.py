"""User, profile and query records.

All records are frozen; updates build new instances with `dataclasses.replace`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _format_number(value: float) -> str:
    return f"{value:g}"


@dataclass(frozen=True)
class Extracurricular:
    name: str
    hours: float

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "hours": self.hours}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Extracurricular":
        return cls(name=str(data.get("name", "")), hours=float(data.get("hours") or 0))

    def describe(self) -> str:
        return f"{self.name} ({_format_number(self.hours)} hrs)"


@dataclass(frozen=True)
class Profile:
    academic_percentage: float | None = None
    interest: str | None = None
    extracurriculars: tuple[Extracurricular, ...] = ()
    extra_info: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "academic_percentage": self.academic_percentage,
            "interest": self.interest,
            "extracurriculars": [ec.to_dict() for ec in self.extracurriculars],
            "extra_info": self.extra_info,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Profile":
        data = data or {}
        percentage = data.get("academic_percentage")
        return cls(
            academic_percentage=float(percentage) if percentage is not None else None,
            interest=data.get("interest"),
            extracurriculars=tuple(
                Extracurricular.from_dict(item) for item in data.get("extracurriculars") or []
            ),
            extra_info=data.get("extra_info") or "",
        )


@dataclass(frozen=True)
class User:
    """A stored account. `password_hash` must never leave the service layer."""

    username: str
    password_hash: str = field(repr=False)
    profile: Profile = field(default_factory=Profile)
    created_at: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "password_hash": self.password_hash,
            "created_at": self.created_at,
            "profile": self.profile.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            username=data["username"],
            password_hash=data["password_hash"],
            profile=Profile.from_dict(data.get("profile")),
            created_at=data.get("created_at") or _now_iso(),
        )


@dataclass(frozen=True)
class RecommendationQuery:
    """Request body merged over the stored profile."""

    percentage: Any
    interest: str | None = None
    extracurriculars: tuple[Extracurricular, ...] = ()

    def interest_text(self) -> str:
        return self.interest or "Not specified"

    def extracurriculars_text(self) -> str:
        if not self.extracurriculars:
            return "none"
        return ", ".join(ec.describe() for ec in self.extracurriculars)
