"""Configuration models and helpers for the activity tracker."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

MAX_ACTIVITIES = 15


@dataclass(slots=True)
class ThemeConfig:
    primary_color: str = "#6366f1"
    dark_mode: bool = False


@dataclass(slots=True)
class AppSettings:
    """User-adjustable settings persisted alongside the records."""

    theme: ThemeConfig = field(default_factory=ThemeConfig)
    max_activities: int = MAX_ACTIVITIES

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppSettings":
        theme = data.get("theme") or {}
        defaults = ThemeConfig()
        return cls(
            theme=ThemeConfig(
                primary_color=theme.get("primary_color", defaults.primary_color),
                dark_mode=bool(theme.get("dark_mode", defaults.dark_mode)),
            ),
            max_activities=int(data.get("max_activities", MAX_ACTIVITIES)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "theme": {
                "primary_color": self.theme.primary_color,
                "dark_mode": self.theme.dark_mode,
            },
            "max_activities": self.max_activities,
        }
