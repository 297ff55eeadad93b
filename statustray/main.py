# SPDX-FileCopyrightText: 2024-present The Statustray Authors
#
# SPDX-License-Identifier: MIT

import sys

import gi

gi.require_version("Gio", "2.0")
from gi.repository import Gio

APP_ID = "io.github.statustray.Host"


def run(argv):
    """
    Initializes and runs the statustray application.

    Args:
        argv (list): Command line arguments passed to the application.

    Returns:
        int: The exit status of the application.
    """
    # Imported here so that `--help` does not pay for the whole package.
    from .application import Application

    app = Application(application_id=APP_ID, flags=Gio.ApplicationFlags.NON_UNIQUE)
    status = app.run(argv)
    return status or app.exit_status


def main():
    sys.exit(run(sys.argv))
