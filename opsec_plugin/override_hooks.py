"""Public boundary through which other plugins install their overrides.

A plugin that wants to patch shared host behaviour hands its installer to
:func:`apply_override` instead of patching directly. Registered cancellers are
consulted first; when any of them vetoes the override the installer never runs,
so there is no partially applied state.
"""
from __future__ import annotations

import threading
from typing import Callable, Iterable, List

from .logging_utils import get_logger

LOGGER = get_logger("Overrides")

Canceller = Callable[[Iterable[str], str], bool]

_cancellers: List[Canceller] = []
_lock = threading.Lock()


def register_canceller(canceller: Canceller) -> None:
    """Register a callable ``(target_identifiers, override_identifier) -> bool``."""

    with _lock:
        if canceller not in _cancellers:
            _cancellers.append(canceller)


def unregister_canceller(canceller: Canceller) -> None:
    with _lock:
        try:
            _cancellers.remove(canceller)
        except ValueError:
            pass


def is_cancelled(target_identifiers: Iterable[str], override_identifier: str) -> bool:
    targets = tuple(target_identifiers)
    with _lock:
        cancellers = list(_cancellers)
    for canceller in cancellers:
        try:
            if canceller(targets, override_identifier):
                return True
        except Exception as exc:
            LOGGER.warning("Override canceller %r raised for %s: %s", canceller, override_identifier, exc)
    return False


def apply_override(
    target_identifiers: Iterable[str],
    override_identifier: str,
    installer: Callable[[], None],
) -> bool:
    """Run ``installer`` unless a canceller vetoes ``override_identifier``.

    Returns
    -------
    bool
        ``True`` when the override was installed, ``False`` when it was
        cancelled.
    """

    targets = tuple(target_identifiers)
    if is_cancelled(targets, override_identifier):
        LOGGER.info("Override %s was cancelled and will not be installed", override_identifier)
        return False
    installer()
    return True
