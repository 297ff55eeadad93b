# SPDX-FileCopyrightText: 2024-present The Statustray Authors
#
# SPDX-License-Identifier: MIT

"""StatusNotifierWatcher service and StatusNotifierItem host client."""

__version__ = "0.1.0"

# Well-known addressing, fixed by the StatusNotifierItem protocol.
WATCHER_BUS_NAME = "org.kde.StatusNotifierWatcher"
WATCHER_OBJECT_PATH = "/StatusNotifierWatcher"
WATCHER_INTERFACE = "org.kde.StatusNotifierWatcher"
ITEM_INTERFACE = "org.kde.StatusNotifierItem"
DEFAULT_ITEM_OBJECT_PATH = "/StatusNotifierItem"
