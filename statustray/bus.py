# SPDX-FileCopyrightText: 2024-present The Statustray Authors
#
# SPDX-License-Identifier: MIT

"""
Thin wrapper around Gio.DBusConnection used by the host client and the item
proxies.

Values cross this boundary as plain Python objects (GLib.Variant.unpack()),
and GLib.Error is translated into the exceptions from statustray.errors.
A GDBusConnection is thread-safe, so one GioBus can be shared by every proxy.
"""

import logging

import gi

gi.require_version("Gio", "2.0")
from gi.repository import Gio, GLib

from .errors import BusTimeoutError, MalformedReplyError, StatusTrayError, TransportError, error_from_dbus_name

logger = logging.getLogger(__name__)

PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"


def translate_error(error: GLib.Error) -> StatusTrayError:
    """Converts a GLib.Error raised by GDBus into a statustray error."""
    if error.matches(Gio.io_error_quark(), Gio.IOErrorEnum.TIMED_OUT):
        return BusTimeoutError(error.message)
    if Gio.DBusError.is_remote_error(error):
        name = Gio.DBusError.get_remote_error(error)
        message = error.message
        # GDBus prefixes remote messages with "GDBus.Error:<name>: ".
        prefix = f"GDBus.Error:{name}: "
        if message.startswith(prefix):
            message = message[len(prefix):]
        return error_from_dbus_name(name, message)
    if error.matches(Gio.io_error_quark(), Gio.IOErrorEnum.CLOSED):
        return TransportError(f"Connection closed: {error.message}")
    return TransportError(error.message)


def open_session_connection() -> Gio.DBusConnection:
    """
    Opens a private connection to the session bus.

    The shared singleton from Gio.bus_get_sync is avoided so that objects
    exported on it dispatch into the thread that opened it.

    Raises:
        TransportError: if the session bus cannot be reached.
    """
    try:
        address = Gio.dbus_address_get_for_bus_sync(Gio.BusType.SESSION, None)
        connection = Gio.DBusConnection.new_for_address_sync(
            address,
            Gio.DBusConnectionFlags.AUTHENTICATION_CLIENT | Gio.DBusConnectionFlags.MESSAGE_BUS_CONNECTION,
            None,  # observer
            None,  # cancellable
        )
    except GLib.Error as e:
        raise TransportError(f"Failed to connect to the D-Bus session bus: {e.message}") from e
    logger.debug(f"Opened session bus connection {connection.get_unique_name()}")
    return connection


class GioBus:
    """Outbound calls and signal subscriptions on one connection."""

    def __init__(self, connection: Gio.DBusConnection):
        self._connection = connection

    @property
    def unique_name(self) -> str:
        return self._connection.get_unique_name()

    def call(self, bus_name, object_path, interface_name, method_name, signature=None, args=None,
             timeout_ms=-1, reply_signature=None):
        """
        Makes a blocking method call.

        Args:
            signature (str, optional): GVariant tuple type of the arguments, e.g. "(ii)".
            args (tuple, optional): The argument values.
            timeout_ms (int): Call timeout in milliseconds, -1 for the GDBus default.
            reply_signature (str, optional): Expected reply type; a mismatch raises
                MalformedReplyError.

        Returns:
            tuple: The unpacked reply values.
        """
        parameters = GLib.Variant(signature, tuple(args or ())) if signature else None
        reply_type = GLib.VariantType.new(reply_signature) if reply_signature else None
        logger.debug(f"Calling {bus_name}{object_path} {interface_name}.{method_name} (timeout {timeout_ms} ms)")
        try:
            reply = self._connection.call_sync(
                bus_name,
                object_path,
                interface_name,
                method_name,
                parameters,
                reply_type,
                Gio.DBusCallFlags.NONE,
                timeout_ms,
                None,  # cancellable
            )
        except GLib.Error as e:
            if reply_type is not None and e.matches(Gio.io_error_quark(), Gio.IOErrorEnum.INVALID_ARGUMENT):
                raise MalformedReplyError(f"{interface_name}.{method_name}: {e.message}") from e
            raise translate_error(e) from e
        return reply.unpack() if reply is not None else ()

    def get_property(self, bus_name, object_path, interface_name, property_name, timeout_ms=-1):
        (value,) = self.call(
            bus_name, object_path, PROPERTIES_INTERFACE, "Get",
            "(ss)", (interface_name, property_name),
            timeout_ms=timeout_ms, reply_signature="(v)",
        )
        return value

    def subscribe(self, bus_name, object_path, interface_name, signal_name, callback) -> int:
        """
        Calls callback(*args) every time the signal arrives.

        The callback runs in the GLib main context that was the thread default
        when subscribe() was called.

        Returns:
            int: A subscription id for unsubscribe().
        """
        def _on_signal(connection, sender_name, path, interface, signal, parameters):
            args = parameters.unpack() if parameters is not None else ()
            logger.debug(f"Signal {interface}.{signal} from {sender_name}{path}: {args}")
            callback(*args)

        subscription_id = self._connection.signal_subscribe(
            bus_name,
            interface_name,
            signal_name,
            object_path,
            None,  # arg0
            Gio.DBusSignalFlags.NONE,
            _on_signal,
        )
        logger.debug(f"Subscribed to {interface_name}.{signal_name} on {bus_name}{object_path} (id {subscription_id})")
        return subscription_id

    def unsubscribe(self, subscription_id: int):
        self._connection.signal_unsubscribe(subscription_id)
