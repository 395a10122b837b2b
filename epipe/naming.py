# filename: epipe/naming.py

from __future__ import annotations

import itertools
import logging

logger = logging.getLogger(__name__)

_serial = itertools.count()


def make_entity_name(owner: object, type_name: str, role: str) -> str:
    """
    Return a fresh name for an entity the user did not name.

    The name combines the role tag with a process-wide serial and the owner's
    identity. `id()` alone is unique among live objects, but a record can
    outlive the handle that created it, so the serial keeps recycled
    identities from colliding.
    """
    if len(role) != 1:
        raise ValueError(f"entity role must be a single character, got {role!r}")
    name = f"{role}{next(_serial)}_{id(owner):x}"
    logger.debug("auto-named %s %s", type_name, name)
    return name
