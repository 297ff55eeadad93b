# SPDX-FileCopyrightText: 2024-present The Statustray Authors
#
# SPDX-License-Identifier: MIT

"""
Client-side handle for one remote org.kde.StatusNotifierItem.

Every getter is a fresh round trip with a short timeout: a hung item process
makes its own calls fail with BusTimeoutError instead of stalling the host.
"""

import logging

from . import ITEM_INTERFACE
from . import registration
from .errors import MalformedReplyError, RemoteObjectMissingError
from .types import Category, Status

logger = logging.getLogger(__name__)

DEFAULT_CALL_TIMEOUT_MS = 50


class SignalSubscription:
    """Handle returned by every on_* method; cancel() stops the callbacks."""

    def __init__(self, bus, subscription_id: int, signal_name: str):
        self._bus = bus
        self.subscription_id = subscription_id
        self.signal_name = signal_name
        self.cancelled = False

    def cancel(self):
        if self.cancelled:
            return
        self._bus.unsubscribe(self.subscription_id)
        self.cancelled = True
        logger.debug(f"Cancelled subscription {self.subscription_id} to {self.signal_name}")

    def __repr__(self):
        state = "cancelled" if self.cancelled else "active"
        return f"SignalSubscription({self.signal_name}, id={self.subscription_id}, {state})"


def _expect(value, expected_type, property_name):
    # bool is an int subclass; a boolean where a number belongs is still malformed.
    if isinstance(value, bool) and expected_type is not bool:
        raise MalformedReplyError(f"{property_name}: expected {expected_type.__name__}, got bool")
    if not isinstance(value, expected_type):
        raise MalformedReplyError(
            f"{property_name}: expected {expected_type.__name__}, got {type(value).__name__}")
    return value


class ItemProxy:
    """
    An alias to a status notifier item, for pulling data, calling methods and
    registering signals.

    Args:
        registration_string (str): An entry of RegisteredStatusNotifierItems.
        bus (GioBus): Connection wrapper shared with the host client.
        timeout_ms (int): Timeout applied to every call against the item.

    Raises:
        RegistrationStringError: if registration_string cannot be parsed.
    """

    def __init__(self, registration_string: str, bus, timeout_ms: int = DEFAULT_CALL_TIMEOUT_MS):
        self.registration_string = registration_string
        self.reference = registration.parse(registration_string)
        self._bus = bus
        self._timeout_ms = timeout_ms

    @property
    def bus_name(self) -> str:
        return self.reference.bus_name

    @property
    def object_path(self) -> str:
        return self.reference.object_path

    # --- Properties ---

    def get(self, property_name: str):
        """Reads one property of the item, untyped."""
        return self._bus.get_property(
            self.bus_name, self.object_path, ITEM_INTERFACE, property_name, timeout_ms=self._timeout_ms)

    def _get_typed(self, property_name: str, expected_type):
        return _expect(self.get(property_name), expected_type, property_name)

    def get_category(self):
        return Category.from_wire(self._get_typed("Category", str))

    def get_id(self) -> str:
        return self._get_typed("Id", str)

    def get_title(self) -> str:
        return self._get_typed("Title", str)

    def get_status(self):
        return Status.from_wire(self._get_typed("Status", str))

    def get_window_id(self) -> int:
        window_id = self._get_typed("WindowId", int)
        if not 0 <= window_id <= 0xFFFFFFFF:
            raise MalformedReplyError(f"WindowId: {window_id} is not an unsigned 32-bit value")
        return window_id

    def get_icon_name(self) -> str:
        return self._get_typed("IconName", str)

    def get_overlay_icon_name(self) -> str:
        return self._get_typed("OverlayIconName", str)

    def get_attention_icon_name(self) -> str:
        return self._get_typed("AttentionIconName", str)

    def get_attention_movie_name(self) -> str:
        return self._get_typed("AttentionMovieName", str)

    def get_icon_theme_path(self) -> str:
        return self._get_typed("IconThemePath", str)

    def get_is_menu(self) -> bool:
        # ItemIsMenu is the documented name; some items only export IsMenu.
        try:
            return self._get_typed("ItemIsMenu", bool)
        except RemoteObjectMissingError:
            return self._get_typed("IsMenu", bool)

    def get_menu(self):
        """Object path of the item's dbusmenu, passed through uninterpreted."""
        return self.get("Menu")

    def get_tool_tip(self):
        """The raw (icon name, icon pixmaps, title, description) tuple."""
        return self.get("ToolTip")

    # --- Methods ---

    def call(self, method_name: str, signature: str | None = None, args: tuple = ()):
        return self._bus.call(
            self.bus_name, self.object_path, ITEM_INTERFACE, method_name,
            signature, args, timeout_ms=self._timeout_ms)

    def context_menu(self, x: int, y: int):
        self.call("ContextMenu", "(ii)", (x, y))

    def activate(self, x: int, y: int):
        self.call("Activate", "(ii)", (x, y))

    def secondary_activate(self, x: int, y: int):
        self.call("SecondaryActivate", "(ii)", (x, y))

    def scroll(self, delta: int, orientation: str):
        self.call("Scroll", "(is)", (delta, orientation))

    # --- Signals ---

    def signal(self, signal_name: str, callback) -> SignalSubscription:
        subscription_id = self._bus.subscribe(
            self.bus_name, self.object_path, ITEM_INTERFACE, signal_name, callback)
        return SignalSubscription(self._bus, subscription_id, signal_name)

    def on_new_title(self, callback) -> SignalSubscription:
        return self.signal("NewTitle", callback)

    def on_new_icon(self, callback) -> SignalSubscription:
        return self.signal("NewIcon", callback)

    def on_new_attention_icon(self, callback) -> SignalSubscription:
        return self.signal("NewAttentionIcon", callback)

    def on_new_overlay_icon(self, callback) -> SignalSubscription:
        return self.signal("NewOverlayIcon", callback)

    def on_new_tool_tip(self, callback) -> SignalSubscription:
        return self.signal("NewToolTip", callback)

    def on_new_status(self, callback) -> SignalSubscription:
        """callback receives the new status as a Status (or Unrecognized)."""
        return self.signal("NewStatus", lambda status: callback(Status.from_wire(status)))

    def on_new_icon_theme_path(self, callback) -> SignalSubscription:
        return self.signal("NewIconThemePath", callback)

    def __repr__(self):
        return f"ItemProxy(item={self.bus_name} {self.object_path})"
