"""Shared fixtures.

Most of the suite runs against FakeBus, an in-process stand-in for GioBus:
the watcher side is served by a real StatusNotifierWatcher and items are
plain property dictionaries. Nothing here needs a D-Bus daemon or PyGObject.
"""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from statustray import WATCHER_BUS_NAME, WATCHER_INTERFACE, WATCHER_OBJECT_PATH
from statustray.errors import BusTimeoutError, RemoteObjectMissingError
from statustray.watcher import StatusNotifierWatcher


@dataclass
class Call:
    bus_name: str
    object_path: str
    interface_name: str
    method_name: str
    signature: str | None
    args: tuple
    timeout_ms: int


class FakeBus:
    def __init__(self, watcher: StatusNotifierWatcher | None = None):
        self.watcher = watcher if watcher is not None else StatusNotifierWatcher()
        self.watcher.emit_signal = self._emit_from_watcher
        self.unique_name = ":1.99"
        self.items: dict[tuple[str, str], dict] = {}
        self.hang_ms: dict[tuple[str, str], int] = {}
        self.calls: list[Call] = []
        self.subscriptions: dict[int, tuple] = {}
        self.watcher_online = True
        self._next_id = 1

    # --- test helpers ---

    def add_item(self, bus_name, object_path="/StatusNotifierItem", **properties):
        self.items[(bus_name, object_path)] = dict(properties)

    def emit(self, bus_name, object_path, interface_name, signal_name, *args):
        for sub_bus, sub_path, sub_iface, sub_signal, callback in list(self.subscriptions.values()):
            if (sub_bus, sub_path, sub_iface, sub_signal) == (bus_name, object_path, interface_name, signal_name):
                callback(*args)

    def _emit_from_watcher(self, signal_name, args):
        self.emit(WATCHER_BUS_NAME, WATCHER_OBJECT_PATH, WATCHER_INTERFACE, signal_name, *args)

    def _is_watcher(self, bus_name, object_path):
        return (bus_name, object_path) == (WATCHER_BUS_NAME, WATCHER_OBJECT_PATH)

    def _item(self, bus_name, object_path, timeout_ms):
        key = (bus_name, object_path)
        if key not in self.items:
            raise RemoteObjectMissingError(f"org.freedesktop.DBus.Error.ServiceUnknown: {bus_name}")
        hang = self.hang_ms.get(key)
        if hang is not None and 0 <= timeout_ms < hang:
            raise BusTimeoutError(f"Timeout was reached after {timeout_ms} ms")
        return self.items[key]

    # --- GioBus interface ---

    def get_property(self, bus_name, object_path, interface_name, property_name, timeout_ms=-1):
        if self._is_watcher(bus_name, object_path):
            if not self.watcher_online:
                raise RemoteObjectMissingError(f"org.freedesktop.DBus.Error.ServiceUnknown: {bus_name}")
            try:
                return self.watcher.get_property(property_name)
            except KeyError:
                raise RemoteObjectMissingError(f"org.freedesktop.DBus.Error.UnknownProperty: {property_name}")
        properties = self._item(bus_name, object_path, timeout_ms)
        if property_name not in properties:
            raise RemoteObjectMissingError(f"org.freedesktop.DBus.Error.UnknownProperty: {property_name}")
        return properties[property_name]

    def call(self, bus_name, object_path, interface_name, method_name, signature=None, args=None,
             timeout_ms=-1, reply_signature=None):
        args = tuple(args or ())
        self.calls.append(Call(bus_name, object_path, interface_name, method_name, signature, args, timeout_ms))
        if self._is_watcher(bus_name, object_path):
            if method_name == "RegisterStatusNotifierHost":
                self.watcher.register_status_notifier_host(*args)
            return ()
        self._item(bus_name, object_path, timeout_ms)
        return ()

    def subscribe(self, bus_name, object_path, interface_name, signal_name, callback):
        subscription_id = self._next_id
        self._next_id += 1
        self.subscriptions[subscription_id] = (bus_name, object_path, interface_name, signal_name, callback)
        return subscription_id

    def unsubscribe(self, subscription_id):
        del self.subscriptions[subscription_id]


@pytest.fixture
def fake_bus():
    return FakeBus()


@pytest.fixture
def watcher(fake_bus):
    return fake_bus.watcher
