# SPDX-FileCopyrightText: 2024-present The Statustray Authors
#
# SPDX-License-Identifier: MIT

import logging
import sys
from dataclasses import dataclass

import gi

gi.require_version("Gio", "2.0")
from gi.repository import Gio, GLib

from .bus import GioBus, open_session_connection
from .config import Settings, load_settings
from .errors import ConfigError, StatusTrayError
from .gate import ReadinessGate
from .host import HostClient
from .item import ItemProxy
from .service import WatcherService
from .types import Status, Unrecognized

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str):
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT, force=True)


@dataclass
class ItemView:
    """
    A live item together with the display attributes last read from it.

    A view whose last refresh failed is stale and left out of
    Application.items until a later refresh succeeds.
    """
    proxy: ItemProxy
    id: str
    title: str
    status: Status | Unrecognized
    icon_name: str
    icon_theme_path: str | None = None
    stale: bool = False


class Application(Gio.Application):
    """
    The statustray host process.

    Owns everything the tray needs for its whole lifetime: the settings, the
    readiness gate, the watcher thread, the host connection and the list of
    items. Callbacks reach that state through the application instance.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.settings: Settings | None = None
        self.gate: ReadinessGate | None = None
        self.watcher_service: WatcherService | None = None
        self.bus: GioBus | None = None
        self.host: HostClient | None = None
        self._views: list[ItemView] = []
        self.exit_status = 0
        self._list_only = False
        self._item_subscriptions = []
        self._watcher_subscription = None

        self.add_main_option("config", ord("c"), GLib.OptionFlags.NONE, GLib.OptionArg.STRING,
                             "Path to the configuration file", "FILE")
        self.add_main_option("list", ord("l"), GLib.OptionFlags.NONE, GLib.OptionArg.NONE,
                             "Print the registered items and exit", None)
        self.add_main_option("no-watcher", 0, GLib.OptionFlags.NONE, GLib.OptionArg.NONE,
                             "Use an already running StatusNotifierWatcher", None)
        self.add_main_option("verbose", ord("v"), GLib.OptionFlags.NONE, GLib.OptionArg.NONE,
                             "Log debug messages", None)

        self.connect("handle-local-options", self.on_handle_local_options)
        self.connect("activate", self.on_activate)
        self.connect("shutdown", self.on_shutdown)

    @property
    def items(self) -> list[ItemView]:
        """Items currently shown, in registration order; stale views are left out."""
        return [view for view in self._views if not view.stale]

    def on_handle_local_options(self, app, options):
        """Loads settings and configures logging. Returns -1 to keep going."""
        config_path = None
        if options.contains("config"):
            config_path = options.lookup_value("config", GLib.VariantType.new("s")).get_string()
        try:
            self.settings = load_settings(config_path)
        except ConfigError as e:
            configure_logging("INFO")
            logger.critical(f"Invalid configuration: {e}")
            return 1

        if options.contains("verbose"):
            self.settings.log_level = "DEBUG"
        self._list_only = options.contains("list")
        # A watcher started just for --list would own an empty registry.
        if options.contains("no-watcher") or self._list_only:
            self.settings.run_watcher = False
        configure_logging(self.settings.log_level)
        return -1

    def on_activate(self, app):
        logger.info("Application activated.")
        if self.host is not None:
            return
        if not self._bootstrap():
            self.exit_status = 1
            return

        if self._list_only:
            for view in self.items:
                print(f"{view.proxy.registration_string}\t{view.id}\t{view.title}\t{view.status}")
            return

        # No windows keep us alive; hold until quit() or a fatal watcher error.
        self.hold()

    def _bootstrap(self) -> bool:
        """Starts the watcher, waits for it and loads the item list."""
        if self.settings is None:
            self.settings = Settings()
        self.gate = ReadinessGate(settle_delay=self.settings.settle_delay_ms / 1000)

        if self.settings.run_watcher:
            logger.info("Starting StatusNotifierWatcher thread...")
            self.watcher_service = WatcherService()
            self.watcher_service.start_thread(self.gate, on_fatal=self._on_watcher_fatal)

        try:
            if self.watcher_service is not None:
                self.gate.wait(self.settings.startup_timeout_s)
            self.bus = GioBus(open_session_connection())
        except StatusTrayError as e:
            logger.critical(f"Startup failed: {e}")
            print(f"statustray: {e}", file=sys.stderr)
            return False

        self.host = HostClient(self.bus, timeout_ms=self.settings.call_timeout_ms)
        try:
            logger.info(f"Watcher protocol version: {self.host.get_protocol_version()}")
            self.host.register_as_host(self.bus.unique_name)
        except StatusTrayError as e:
            logger.critical(f"Cannot talk to the StatusNotifierWatcher: {e}")
            return False

        self._watcher_subscription = self.host.on_item_registered(self._on_item_registered)
        self.refresh_items()
        return True

    def refresh_items(self):
        """Re-reads the registry and the display attributes of every item."""
        for subscription in self._item_subscriptions:
            subscription.cancel()
        self._item_subscriptions = []

        try:
            proxies = self.host.get_registered_items()
        except StatusTrayError as e:
            logger.error(f"Failed to list registered items: {e}")
            return

        views = []
        for proxy in proxies:
            view = self._describe(proxy)
            if view is None:
                continue
            views.append(view)
            for subscribe in (proxy.on_new_title, proxy.on_new_icon, proxy.on_new_status):
                self._item_subscriptions.append(subscribe(lambda *args, v=view: self._on_item_changed(v)))
        self._views = views
        logger.info(f"{len(self._views)} item(s) available.")

    def _describe(self, proxy: ItemProxy) -> ItemView | None:
        try:
            view = ItemView(
                proxy=proxy,
                id=proxy.get_id(),
                title=proxy.get_title(),
                status=proxy.get_status(),
                icon_name=proxy.get_icon_name(),
            )
        except StatusTrayError as e:
            logger.warning(f"Omitting {proxy.registration_string}: {e}")
            return None
        try:
            view.icon_theme_path = proxy.get_icon_theme_path() or None
        except StatusTrayError:
            pass  # optional property
        logger.info(f"Item {view.id!r} title={view.title!r} status={view.status} icon={view.icon_name!r}")
        return view

    def _on_item_registered(self, *args):
        logger.debug("StatusNotifierItemRegistered received, refreshing items.")
        self.refresh_items()

    def _on_item_changed(self, view: ItemView):
        refreshed = self._describe(view.proxy)
        if refreshed is None:
            # Keep the view and its subscriptions; the next signal may succeed.
            view.stale = True
            return
        view.title, view.status, view.icon_name = refreshed.title, refreshed.status, refreshed.icon_name
        view.icon_theme_path = refreshed.icon_theme_path
        view.stale = False

    def _on_watcher_fatal(self, error):
        # Called from the watcher thread; hop to the main loop before quitting.
        GLib.idle_add(self._quit_with_error, error)

    def _quit_with_error(self, error):
        logger.critical(f"StatusNotifierWatcher failed, exiting: {error}")
        self.exit_status = 1
        self.quit()
        return GLib.SOURCE_REMOVE

    def on_shutdown(self, app):
        logger.info("Application shutting down.")
        for subscription in self._item_subscriptions:
            subscription.cancel()
        if self._watcher_subscription is not None:
            self._watcher_subscription.cancel()
        if self.watcher_service is not None:
            self.watcher_service.stop()
