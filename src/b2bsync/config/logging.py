"""Logging setup for the command-line entry point."""

from __future__ import annotations

import logging

# httpx logs every request at INFO, which drowns out per-row progress.
_NOISY_LOGGERS = ("httpx", "httpcore", "googleapiclient.discovery_cache")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with a terse CLI format.

    Pass ``force=True`` to reconfigure during tests or when ``--verbose`` is
    parsed after an earlier call.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    quiet_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
