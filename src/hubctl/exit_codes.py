"""Process exit statuses reported by hubctl commands."""
from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit status per failure class.

    ``VALIDATION`` covers selector and configuration problems. ``PROVIDER``
    means the Hub API answered unexpectedly; ``ENVIRONMENT`` is a local file
    that could not be written. ``FAILURE`` is a followed operation that did
    not succeed.
    """

    OK = 0
    FAILURE = 1
    VALIDATION = 2
    ENVIRONMENT = 3
    PROVIDER = 4
    INTERRUPTED = 130
