# SPDX-FileCopyrightText: 2024-present The Statustray Authors
#
# SPDX-License-Identifier: MIT

import logging
import threading

import gi

gi.require_version("Gio", "2.0")
from gi.repository import Gio, GLib

from . import WATCHER_BUS_NAME, WATCHER_INTERFACE, WATCHER_OBJECT_PATH
from .bus import open_session_connection
from .errors import NameClaimError, RegistrationStringError, RegistryCorruptedError
from .interfaces import STATUS_NOTIFIER_WATCHER_INTERFACE_XML
from .watcher import StatusNotifierWatcher

logger = logging.getLogger(__name__)

# org.freedesktop.DBus.RequestName flags and replies
DBUS_NAME_FLAG_DO_NOT_QUEUE = 0x4
DBUS_REQUEST_NAME_REPLY_PRIMARY_OWNER = 1
DBUS_REQUEST_NAME_REPLY_EXISTS = 3
DBUS_REQUEST_NAME_REPLY_ALREADY_OWNER = 4

PROPERTY_SIGNATURES = {
    "RegisteredStatusNotifierItems": "as",
    "IsStatusNotifierHostRegistered": "b",
    "ProtocolVersion": "y",
}

SIGNAL_SIGNATURES = {
    "StatusNotifierHostRegistered": None,
    "StatusNotifierHostUnregistered": None,
    "StatusNotifierItemRegistered": "(s)",
    "StatusNotifierItemUnregistered": "(s)",
}


class WatcherService:
    """
    Exports a StatusNotifierWatcher on the session bus under the well-known
    name org.kde.StatusNotifierWatcher.

    serve_forever() owns a private connection and a private GLib main context,
    so it can run in its own thread next to a host that uses the default one.
    """

    def __init__(self, watcher: StatusNotifierWatcher | None = None):
        self.watcher = watcher if watcher is not None else StatusNotifierWatcher()
        self.watcher.emit_signal = self._emit_signal
        self._connection: Gio.DBusConnection | None = None
        self._registration_id: int = 0
        self._loop: GLib.MainLoop | None = None
        self._fatal_error: BaseException | None = None
        self._thread: threading.Thread | None = None

    # --- Startup ---

    def start(self, connection: Gio.DBusConnection):
        """
        Exports the watcher object on connection and claims the well-known name.

        The object is registered first so the name never points at nothing.

        Raises:
            NameClaimError: if the name is owned by someone else or the claim failed.
        """
        node_info = Gio.DBusNodeInfo.new_for_xml(STATUS_NOTIFIER_WATCHER_INTERFACE_XML)
        interface_info = node_info.lookup_interface(WATCHER_INTERFACE)

        self._connection = connection
        try:
            self._registration_id = connection.register_object(
                object_path=WATCHER_OBJECT_PATH,
                interface_info=interface_info,
                method_call_closure=self._handle_method_call,
                get_property_closure=self._handle_get_property,
                set_property_closure=None,  # all properties are read-only
            )
        except GLib.Error as e:
            raise NameClaimError(f"Failed to export {WATCHER_OBJECT_PATH}: {e.message}") from e
        logger.info(f"Registered StatusNotifierWatcher object at {WATCHER_OBJECT_PATH}")

        try:
            self._request_name(connection)
        except NameClaimError:
            connection.unregister_object(self._registration_id)
            self._registration_id = 0
            raise
        logger.info(f"Acquired D-Bus name: {WATCHER_BUS_NAME}")

    def _request_name(self, connection: Gio.DBusConnection):
        try:
            reply = connection.call_sync(
                "org.freedesktop.DBus",
                "/org/freedesktop/DBus",
                "org.freedesktop.DBus",
                "RequestName",
                GLib.Variant("(su)", (WATCHER_BUS_NAME, DBUS_NAME_FLAG_DO_NOT_QUEUE)),
                GLib.VariantType.new("(u)"),
                Gio.DBusCallFlags.NONE,
                -1,  # default timeout
                None,  # cancellable
            )
        except GLib.Error as e:
            raise NameClaimError(f"RequestName({WATCHER_BUS_NAME}) failed: {e.message}") from e

        (result,) = reply.unpack()
        if result == DBUS_REQUEST_NAME_REPLY_EXISTS:
            raise NameClaimError(f"{WATCHER_BUS_NAME} is already owned by another process")
        if result not in (DBUS_REQUEST_NAME_REPLY_PRIMARY_OWNER, DBUS_REQUEST_NAME_REPLY_ALREADY_OWNER):
            raise NameClaimError(f"Unexpected RequestName reply {result} for {WATCHER_BUS_NAME}")

    # --- Serving ---

    def serve_forever(self, gate=None):
        """
        Connects, claims the name, opens the gate and dispatches calls until stop().

        Any startup error is handed to gate.fail() and re-raised. A registry
        corruption detected while serving stops the loop and is raised here.
        """
        context = GLib.MainContext.new()
        context.push_thread_default()
        try:
            try:
                self.start(open_session_connection())
            except Exception as e:
                logger.error(f"Watcher failed to start: {e}")
                if gate is not None:
                    gate.fail(e)
                raise

            self._loop = GLib.MainLoop.new(context, False)
            # Released from inside the loop, so stop() after gate.wait() always lands.
            started = GLib.idle_source_new()
            started.set_callback(lambda *args: self._on_loop_started(gate))
            started.attach(context)
            self._loop.run()
        finally:
            self._unregister()
            context.pop_thread_default()

        if self._fatal_error is not None:
            raise self._fatal_error

    def start_thread(self, gate=None, on_fatal=None) -> threading.Thread:
        """
        Runs serve_forever() in a daemon thread.

        Args:
            gate (ReadinessGate, optional): Released once the name is owned.
            on_fatal (callable, optional): Called with the exception if the
                watcher dies after a successful start.
        """
        def _run():
            try:
                self.serve_forever(gate)
            except Exception as e:
                if gate is not None and not gate.is_open:
                    return  # reported to the waiter through the gate
                logger.critical(f"Watcher stopped serving: {e}", exc_info=True)
                if on_fatal is not None:
                    on_fatal(e)

        self._thread = threading.Thread(target=_run, name="statustray-watcher", daemon=True)
        self._thread.start()
        return self._thread

    def _on_loop_started(self, gate):
        logger.info("StatusNotifierWatcher serving.")
        if gate is not None:
            gate.open()
        return GLib.SOURCE_REMOVE

    def stop(self, timeout: float | None = 5.0):
        """Quits the serve loop and waits for the watcher thread to finish."""
        self._quit_loop()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning(f"Watcher thread still running after {timeout} seconds")

    def _quit_loop(self):
        if self._loop is not None:
            self._loop.quit()

    def _abort(self, error: BaseException):
        """Stops serving rather than answering from a corrupted registry."""
        logger.critical(f"Aborting watcher: {error}")
        self._fatal_error = error
        self._quit_loop()

    def _unregister(self):
        if self._connection is not None and self._registration_id > 0:
            self._connection.unregister_object(self._registration_id)
            logger.info("Unregistered StatusNotifierWatcher object.")
        self._registration_id = 0

    # --- D-Bus dispatch ---

    def _handle_method_call(self, connection, sender, object_path, interface_name,
                            method_name, parameters, invocation):
        logger.debug(f"_handle_method_call: {interface_name}.{method_name} from {sender} on {object_path}")

        if interface_name != WATCHER_INTERFACE:
            invocation.return_dbus_error("org.freedesktop.DBus.Error.UnknownInterface",
                                         f"Unknown interface {interface_name}")
            return

        if method_name == "RegisterStatusNotifierHost":
            (service,) = parameters.unpack()
            self.watcher.register_status_notifier_host(service)
            invocation.return_value(None)
        elif method_name == "RegisterStatusNotifierItem":
            (service,) = parameters.unpack()
            try:
                self.watcher.register_status_notifier_item(sender, service)
            except RegistrationStringError as e:
                logger.warning(f"Rejected item registration from {sender}: {e}")
                invocation.return_dbus_error("org.freedesktop.DBus.Error.InvalidArgs", str(e))
                return
            except RegistryCorruptedError as e:
                invocation.return_dbus_error("org.freedesktop.DBus.Error.Failed", str(e))
                self._abort(e)
                return
            invocation.return_value(None)
        else:
            logger.warning(f"Received unknown method call: {method_name}")
            invocation.return_dbus_error("org.freedesktop.DBus.Error.UnknownMethod",
                                         f"Unknown method {method_name}")

    def _handle_get_property(self, connection, sender, object_path, interface_name, property_name):
        logger.debug(f"_handle_get_property: {interface_name}.{property_name} from {sender}")
        signature = PROPERTY_SIGNATURES.get(property_name)
        if interface_name != WATCHER_INTERFACE or signature is None:
            logger.warning(f"GetProperty request for unknown property: {interface_name}.{property_name}")
            return None
        try:
            value = self.watcher.get_property(property_name)
        except RegistryCorruptedError as e:
            self._abort(e)
            return None
        return GLib.Variant(signature, value)

    def _emit_signal(self, signal_name: str, args: tuple = ()):
        if self._connection is None or self._registration_id == 0:
            logger.warning(f"Cannot emit signal '{signal_name}', watcher is not exported.")
            return
        signature = SIGNAL_SIGNATURES[signal_name]
        parameters = GLib.Variant(signature, args) if signature else None
        try:
            self._connection.emit_signal(
                None,  # broadcast
                WATCHER_OBJECT_PATH,
                WATCHER_INTERFACE,
                signal_name,
                parameters,
            )
            logger.debug(f"Emitted D-Bus signal: {signal_name}{args}")
        except GLib.Error as e:
            logger.error(f"Error emitting D-Bus signal {signal_name}: {e}")
