# SPDX-FileCopyrightText: 2024-present The Statustray Authors
#
# SPDX-License-Identifier: MIT

import logging
import threading
from dataclasses import dataclass, field

from . import registration
from .errors import RegistryCorruptedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredItem:
    """One successful RegisterStatusNotifierItem call."""
    service: str
    sender: str
    registration_string: str = field(init=False, compare=False)

    def __post_init__(self):
        # Validates both halves; raises RegistrationStringError on bad input.
        object.__setattr__(self, "registration_string", registration.encode(self.sender, self.service))


class ItemRegistry:
    """
    Append-only, insertion-ordered table of registered items.

    Property reads can arrive while a registration is being dispatched, so
    every access goes through the lock. A mutation that fails halfway leaves
    the registry marked corrupted and every later access raises.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._items: list[RegisteredItem] = []
        self._corrupted = False

    def _check(self):
        if self._corrupted:
            raise RegistryCorruptedError("Item registry was left in an inconsistent state")

    def add(self, service: str, sender: str) -> RegisteredItem:
        """
        Records a registration and returns the new entry.

        Raises:
            RegistrationStringError: if service or sender cannot be encoded.
                The registry is unchanged in that case.
            RegistryCorruptedError: if the registry is unusable.
        """
        item = RegisteredItem(service=service, sender=sender)
        with self._lock:
            self._check()
            if item in self._items:
                logger.warning(f"Item {item.registration_string} registered more than once")
            try:
                self._items.append(item)
            except BaseException:
                self._corrupted = True
                raise
            logger.debug(f"Registry now holds {len(self._items)} item(s)")
        return item

    def snapshot(self) -> list[RegisteredItem]:
        with self._lock:
            self._check()
            return list(self._items)

    def registration_strings(self) -> list[str]:
        return [item.registration_string for item in self.snapshot()]

    def __len__(self):
        with self._lock:
            self._check()
            return len(self._items)
