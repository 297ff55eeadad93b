# SPDX-FileCopyrightText: 2024-present The Statustray Authors
#
# SPDX-License-Identifier: MIT

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Unrecognized:
    """
    A wire string outside the closed vocabulary of an enum.

    Keeps the original string so callers can tell "the item said Passive"
    apart from "the item said something we do not understand".
    """
    raw: str
    fallback: Enum

    def to_wire(self) -> str:
        return self.raw

    def __str__(self):
        return self.raw


class _WireEnum(Enum):

    @classmethod
    def _fallback(cls):
        raise NotImplementedError

    @classmethod
    def from_wire(cls, value):
        """Returns the member for a protocol string, or Unrecognized for anything else."""
        for member in cls:
            if member.value == value:
                return member
        logger.debug(f"Unrecognized {cls.__name__} value on the wire: {value!r}")
        return Unrecognized(str(value), cls._fallback())

    def to_wire(self) -> str:
        return self.value

    def __str__(self):
        return self.value


class Category(_WireEnum):
    APPLICATION_STATUS = "ApplicationStatus"
    COMMUNICATIONS = "Communications"
    SYSTEM_SERVICES = "SystemServices"
    HARDWARE = "Hardware"
    UNKNOWN = "Unknown"

    @classmethod
    def _fallback(cls):
        return cls.UNKNOWN


class Status(_WireEnum):
    PASSIVE = "Passive"
    ACTIVE = "Active"
    NEEDS_ATTENTION = "NeedsAttention"

    @classmethod
    def _fallback(cls):
        return cls.PASSIVE


def resolve(value):
    """Collapses an Unrecognized value to its enum fallback; members pass through."""
    if isinstance(value, Unrecognized):
        return value.fallback
    return value
