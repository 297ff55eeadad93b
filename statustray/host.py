# SPDX-FileCopyrightText: 2024-present The Statustray Authors
#
# SPDX-License-Identifier: MIT

import logging

from . import WATCHER_BUS_NAME, WATCHER_INTERFACE, WATCHER_OBJECT_PATH
from .errors import ItemIndexError, MalformedReplyError, RegistrationStringError
from .item import DEFAULT_CALL_TIMEOUT_MS, ItemProxy, SignalSubscription

logger = logging.getLogger(__name__)


class HostClient:
    """
    Talks to the StatusNotifierWatcher and hands out ItemProxy objects.

    Nothing is checked at construction time; the first call finds out whether
    the watcher is reachable.
    """

    def __init__(self, bus, timeout_ms: int = DEFAULT_CALL_TIMEOUT_MS):
        self._bus = bus
        self._timeout_ms = timeout_ms

    def _get(self, property_name: str):
        return self._bus.get_property(
            WATCHER_BUS_NAME, WATCHER_OBJECT_PATH, WATCHER_INTERFACE, property_name,
            timeout_ms=self._timeout_ms)

    def get_protocol_version(self) -> int:
        version = self._get("ProtocolVersion")
        if isinstance(version, bool) or not isinstance(version, int):
            raise MalformedReplyError(f"ProtocolVersion: expected a byte, got {version!r}")
        return version

    def is_host_registered(self) -> bool:
        registered = self._get("IsStatusNotifierHostRegistered")
        if not isinstance(registered, bool):
            raise MalformedReplyError(f"IsStatusNotifierHostRegistered: expected bool, got {registered!r}")
        return registered

    def registered_status_notifier_items(self) -> list[str]:
        items = self._get("RegisteredStatusNotifierItems")
        if not isinstance(items, (list, tuple)) or not all(isinstance(i, str) for i in items):
            raise MalformedReplyError(f"RegisteredStatusNotifierItems: expected a list of strings, got {items!r}")
        return list(items)

    def get_item(self, index: int) -> ItemProxy:
        """
        Builds a proxy for the item at index in the current registry snapshot.

        Raises:
            ItemIndexError: if index is outside the snapshot.
            RegistrationStringError: if that entry cannot be parsed.
        """
        items = self.registered_status_notifier_items()
        if not 0 <= index < len(items):
            raise ItemIndexError(f"Item index {index} out of range ({len(items)} registered)")
        return ItemProxy(items[index], self._bus, timeout_ms=self._timeout_ms)

    def get_registered_items(self) -> list[ItemProxy]:
        """
        Builds a proxy for every registered item.

        Entries that cannot be parsed are logged and skipped, so one bad
        registration never hides the others.
        """
        proxies = []
        for registration_string in self.registered_status_notifier_items():
            try:
                proxies.append(ItemProxy(registration_string, self._bus, timeout_ms=self._timeout_ms))
            except RegistrationStringError as e:
                logger.warning(f"Skipping registered item {registration_string!r}: {e}")
        return proxies

    def register_as_host(self, service: str):
        self._bus.call(
            WATCHER_BUS_NAME, WATCHER_OBJECT_PATH, WATCHER_INTERFACE, "RegisterStatusNotifierHost",
            "(s)", (service,), timeout_ms=self._timeout_ms)
        logger.info(f"Registered as StatusNotifierHost: {service}")

    def _subscribe(self, signal_name: str, callback) -> SignalSubscription:
        subscription_id = self._bus.subscribe(
            WATCHER_BUS_NAME, WATCHER_OBJECT_PATH, WATCHER_INTERFACE, signal_name, callback)
        return SignalSubscription(self._bus, subscription_id, signal_name)

    def on_item_registered(self, callback) -> SignalSubscription:
        return self._subscribe("StatusNotifierItemRegistered", callback)

    def on_item_unregistered(self, callback) -> SignalSubscription:
        return self._subscribe("StatusNotifierItemUnregistered", callback)
