"""Stand-ins for the Gio objects WatcherService talks to. Needs PyGObject."""

from gi.repository import GLib

from statustray.service import DBUS_REQUEST_NAME_REPLY_PRIMARY_OWNER


class FakeInvocation:
    def __init__(self):
        self.value = "unanswered"
        self.error = None

    def return_value(self, value):
        self.value = value

    def return_dbus_error(self, name, message):
        self.error = (name, message)


class FakeWatcherConnection:
    """Accepts register_object, answers RequestName with a fixed reply and records signals."""

    def __init__(self, request_name_reply=DBUS_REQUEST_NAME_REPLY_PRIMARY_OWNER):
        self.request_name_reply = request_name_reply
        self.registered = {}
        self.signals = []
        self._next_id = 1

    def register_object(self, object_path, interface_info, method_call_closure,
                        get_property_closure, set_property_closure):
        registration_id = self._next_id
        self._next_id += 1
        self.registered[registration_id] = (object_path, interface_info.name)
        return registration_id

    def unregister_object(self, registration_id):
        del self.registered[registration_id]

    def call_sync(self, *args):
        return GLib.Variant("(u)", (self.request_name_reply,))

    def emit_signal(self, destination, object_path, interface_name, signal_name, parameters):
        self.signals.append((object_path, interface_name, signal_name,
                             parameters.unpack() if parameters is not None else None))
