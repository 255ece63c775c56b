"""
Enumerations recognised by the media server REST API.
"""

from __future__ import annotations

from enum import Enum
from typing import Type, TypeVar

from .errors import InvalidEnumValueError

E = TypeVar("E", bound="ServerEnum")


class ServerEnum(str, Enum):
    """String enum whose members are validated against the server vocabulary."""

    @classmethod
    def parse(cls: Type[E], value: object) -> E:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            raise InvalidEnumValueError(cls.__name__, value) from None

    def __str__(self) -> str:
        return self.value


class MediaMode(ServerEnum):
    """How media flows between participants."""

    ROUTED = "ROUTED"
    RELAYED = "RELAYED"


class RecordingMode(ServerEnum):
    ALWAYS = "ALWAYS"
    MANUAL = "MANUAL"


class OutputMode(ServerEnum):
    """Default output of a session recording."""

    COMPOSED = "COMPOSED"
    COMPOSED_QUICK_START = "COMPOSED_QUICK_START"
    INDIVIDUAL = "INDIVIDUAL"


class RecordingLayout(ServerEnum):
    BEST_FIT = "BEST_FIT"
    PICTURE_IN_PICTURE = "PICTURE_IN_PICTURE"
    VERTICAL_PRESENTATION = "VERTICAL_PRESENTATION"
    HORIZONTAL_PRESENTATION = "HORIZONTAL_PRESENTATION"
    CUSTOM = "CUSTOM"


class Role(ServerEnum):
    """Participant role granted by a token."""

    SUBSCRIBER = "SUBSCRIBER"
    PUBLISHER = "PUBLISHER"
    MODERATOR = "MODERATOR"


__all__ = [
    "MediaMode",
    "OutputMode",
    "RecordingLayout",
    "RecordingMode",
    "Role",
    "ServerEnum",
]
