# SPDX-FileCopyrightText: 2024-present The Statustray Authors
#
# SPDX-License-Identifier: MIT

import logging

from .registry import ItemRegistry, RegisteredItem

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = 0

# StatusNotifierItemRegistered always carries this argument. Hosts are
# expected to re-read RegisteredStatusNotifierItems when they see it.
ITEM_REGISTERED_PAYLOAD = "/"


class StatusNotifierWatcher:
    """
    The org.kde.StatusNotifierWatcher object, independent of any bus binding.

    Owns the item registry. Signals are handed to the emit_signal callable as
    (signal_name, args) so the transport layer can put them on the wire.
    """

    def __init__(self, emit_signal=None, registry: ItemRegistry | None = None):
        self.registry = registry if registry is not None else ItemRegistry()
        self.emit_signal = emit_signal

    def _emit(self, signal_name: str, args: tuple = ()):
        if self.emit_signal is None:
            logger.debug(f"No signal emitter attached, dropping {signal_name}")
            return
        self.emit_signal(signal_name, args)

    # --- Methods ---

    def register_status_notifier_host(self, service: str):
        # Hosts are accepted but not tracked, so IsStatusNotifierHostRegistered stays true
        # and StatusNotifierHostRegistered is never emitted.
        logger.info(f"RegisterStatusNotifierHost service={service}")

    def register_status_notifier_item(self, sender: str, service: str) -> RegisteredItem:
        """
        Records an item registered by the connection `sender`.

        Raises:
            RegistrationStringError: if the service or sender is unusable.
            RegistryCorruptedError: if the registry can no longer be trusted.
        """
        logger.info(f"RegisterStatusNotifierItem service={service} sender={sender}")
        item = self.registry.add(service=service, sender=sender)
        self._emit("StatusNotifierItemRegistered", (ITEM_REGISTERED_PAYLOAD,))
        return item

    # --- Properties ---

    @property
    def registered_status_notifier_items(self) -> list[str]:
        return self.registry.registration_strings()

    @property
    def is_status_notifier_host_registered(self) -> bool:
        return True

    @property
    def protocol_version(self) -> int:
        return PROTOCOL_VERSION

    def get_property(self, property_name: str):
        """
        Looks a property up by its D-Bus name.

        Raises:
            KeyError: for names the interface does not declare.
        """
        if property_name == "RegisteredStatusNotifierItems":
            return self.registered_status_notifier_items
        elif property_name == "IsStatusNotifierHostRegistered":
            return self.is_status_notifier_host_registered
        elif property_name == "ProtocolVersion":
            return self.protocol_version
        raise KeyError(property_name)
