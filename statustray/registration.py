# SPDX-FileCopyrightText: 2024-present The Statustray Authors
#
# SPDX-License-Identifier: MIT

"""
Registration strings: the opaque item identifiers published in the watcher's
RegisteredStatusNotifierItems property.

A registration string is the registering connection's bus name followed by the
item's object path, e.g. ":1.23/StatusNotifierItem". The first "/" always
separates the two halves because bus names can never contain "/".
"""

import re
from dataclasses import dataclass

from . import DEFAULT_ITEM_OBJECT_PATH
from .errors import RegistrationStringError

DELIMITER = "/"

# Object path grammar from the D-Bus specification.
_OBJECT_PATH_RE = re.compile(r"/|(/[A-Za-z0-9_]+)+")


@dataclass(frozen=True)
class ItemReference:
    """Where a remote item lives: a bus name and an object path."""
    bus_name: str
    object_path: str

    def __str__(self):
        return f"{self.bus_name}{self.object_path}"


def is_object_path(value: str) -> bool:
    return bool(_OBJECT_PATH_RE.fullmatch(value))


def normalize_service(service: str) -> str:
    """
    Turns the argument of RegisterStatusNotifierItem into an object path.

    Items either pass their object path (libappindicator style) or a name
    they own (KDE style). Anything that is not a path means the item sits at
    the default path of the registering connection.

    Raises:
        RegistrationStringError: if service is neither form.
    """
    if service.startswith(DELIMITER):
        if not is_object_path(service):
            raise RegistrationStringError(f"Invalid object path in service {service!r}")
        return service
    if not service or DELIMITER in service:
        raise RegistrationStringError(f"Service {service!r} is neither a name nor an object path")
    return DEFAULT_ITEM_OBJECT_PATH


def encode(sender: str, service: str) -> str:
    """
    Builds the registration string for an item.

    The encoding is reversible for the addressing pair, not for service
    itself: every service that is not an object path collapses to
    /StatusNotifierItem. One connection registering "app1" and then "app2"
    therefore publishes the same string twice, and both entries address
    the same object.

    Args:
        sender (str): Bus name of the connection that called RegisterStatusNotifierItem.
        service (str): The argument it passed.

    Returns:
        str: sender followed by the normalized object path.

    Raises:
        RegistrationStringError: if either part would make the string ambiguous.
    """
    if not sender or DELIMITER in sender:
        raise RegistrationStringError(f"Sender {sender!r} cannot be used as an addressing target")
    return f"{sender}{normalize_service(service)}"


def parse(registration_string: str) -> ItemReference:
    """
    Splits a registration string back into an ItemReference.

    The part before the first "/" is the bus name; the rest, rejoined with a
    leading "/", is the object path.
    """
    target, delimiter, rest = registration_string.partition(DELIMITER)
    if not delimiter:
        raise RegistrationStringError(f"No object path in registration string {registration_string!r}")
    if not target:
        raise RegistrationStringError(f"No bus name in registration string {registration_string!r}")
    object_path = DELIMITER + rest
    if not is_object_path(object_path):
        raise RegistrationStringError(f"Invalid object path {object_path!r} in {registration_string!r}")
    return ItemReference(bus_name=target, object_path=object_path)
