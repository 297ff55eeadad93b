# SPDX-FileCopyrightText: 2024-present The Statustray Authors
#
# SPDX-License-Identifier: MIT

"""
Exception types shared by the watcher, the host client and the item proxies.

Transport problems, protocol problems, malformed registration strings and
timeouts each get their own class so callers can decide what to retry.
"""


class StatusTrayError(Exception):
    """Base class for every error raised by statustray."""


class TransportError(StatusTrayError):
    """The bus is unreachable or the connection was dropped."""


class NameClaimError(TransportError):
    """The well-known watcher name could not be claimed."""


class ProtocolError(StatusTrayError):
    """The remote peer answered, but not the way the protocol says it should."""


class RemoteObjectMissingError(ProtocolError):
    """The remote name, object, interface or property does not exist."""


class MalformedReplyError(ProtocolError):
    """The remote object exists but sent a reply of the wrong shape."""


class RegistrationStringError(StatusTrayError):
    """A registration string cannot be split into bus name and object path."""


class BusTimeoutError(StatusTrayError):
    """A remote call did not answer within its timeout."""


class RegistryCorruptedError(StatusTrayError):
    """A registry mutation failed halfway; the registry must not be served."""


class StartupTimeoutError(StatusTrayError):
    """The watcher did not become ready in time."""


class ItemIndexError(StatusTrayError, IndexError):
    """An item index is past the end of the current registry snapshot."""


class ConfigError(StatusTrayError):
    """A configuration value could not be parsed."""


# D-Bus error names that mean "the thing you addressed is not there".
_MISSING_ERROR_NAMES = {
    "org.freedesktop.DBus.Error.ServiceUnknown",
    "org.freedesktop.DBus.Error.NameHasNoOwner",
    "org.freedesktop.DBus.Error.UnknownObject",
    "org.freedesktop.DBus.Error.UnknownInterface",
    "org.freedesktop.DBus.Error.UnknownMethod",
    "org.freedesktop.DBus.Error.UnknownProperty",
}

_MALFORMED_ERROR_NAMES = {
    "org.freedesktop.DBus.Error.InvalidArgs",
    "org.freedesktop.DBus.Error.InvalidSignature",
    "org.freedesktop.DBus.Error.InconsistentMessage",
}

_TIMEOUT_ERROR_NAMES = {
    "org.freedesktop.DBus.Error.NoReply",
    "org.freedesktop.DBus.Error.Timeout",
    "org.freedesktop.DBus.Error.TimedOut",
}

_TRANSPORT_ERROR_NAMES = {
    "org.freedesktop.DBus.Error.Disconnected",
    "org.freedesktop.DBus.Error.NoServer",
    "org.freedesktop.DBus.Error.NoNetwork",
    "org.freedesktop.DBus.Error.AddressInUse",
}


def error_from_dbus_name(name: str, message: str) -> StatusTrayError:
    """
    Maps a remote D-Bus error name onto the local exception hierarchy.

    Args:
        name (str): The D-Bus error name, e.g. "org.freedesktop.DBus.Error.ServiceUnknown".
        message (str): The human readable message that came with it.

    Returns:
        StatusTrayError: An instance of the matching subclass. Names we do not
            know about become a plain ProtocolError.
    """
    text = f"{name}: {message}" if message else name
    if name in _MISSING_ERROR_NAMES:
        return RemoteObjectMissingError(text)
    if name in _MALFORMED_ERROR_NAMES:
        return MalformedReplyError(text)
    if name in _TIMEOUT_ERROR_NAMES:
        return BusTimeoutError(text)
    if name in _TRANSPORT_ERROR_NAMES:
        return TransportError(text)
    return ProtocolError(text)
