"""Shared dataclasses and enums describing configured clusters."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AutoRefreshOptions(str, Enum):
    """Global auto-refresh preference; persisted by member name."""

    DISABLED = "DISABLED"
    SEC_5 = "SEC_5"
    SEC_10 = "SEC_10"
    SEC_30 = "SEC_30"
    MIN_1 = "MIN_1"
    MIN_5 = "MIN_5"

    @property
    def seconds(self) -> int | None:
        """Refresh interval in seconds, or ``None`` when disabled."""

        return _REFRESH_SECONDS.get(self)


_REFRESH_SECONDS: dict[AutoRefreshOptions, int] = {
    AutoRefreshOptions.SEC_5: 5,
    AutoRefreshOptions.SEC_10: 10,
    AutoRefreshOptions.SEC_30: 30,
    AutoRefreshOptions.MIN_1: 60,
    AutoRefreshOptions.MIN_5: 300,
}


class ViewMode(str, Enum):
    """How responses are rendered."""

    TEXT = "TEXT"
    TABLE = "TABLE"


@dataclass(frozen=True, slots=True)
class Credentials:
    """Username/secret pair for a cluster."""

    user: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(user={self.user!r}, password='***')"


@dataclass(frozen=True, slots=True)
class ClusterProfile:
    """Runtime representation of a configured cluster connection."""

    label: str
    url: str
    credentials: Credentials | None = None

    @property
    def has_credentials(self) -> bool:
        return self.credentials is not None


__all__ = ["AutoRefreshOptions", "ClusterProfile", "Credentials", "ViewMode"]
