from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ActorIdentity:
    id: str
    email: str = ""
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.email or "Unnamed user"


@dataclass(frozen=True)
class DisplayInfo:
    name: str
    email: str = ""
    error: bool = False

    @classmethod
    def failed(cls, reason: str) -> "DisplayInfo":
        return cls(name=f"Error: {reason}", error=True)
