from __future__ import annotations

from ..domain.models import ActionKind

LOCAL_PREFIX = "./"
DOCKER_PREFIX = "docker://"


def is_local_action(reference: object) -> bool:
    """Return True when ``reference`` points inside the same repository."""
    if not reference or not isinstance(reference, str):
        return False
    return reference == "." or reference.startswith(LOCAL_PREFIX)


def classify(reference: object) -> ActionKind | None:
    """Classify a step's ``uses:`` reference.

    Rules are evaluated in order: local (``.`` or ``./...``), docker
    (``docker://...``), external (anything with an owner segment, e.g.
    ``actions/checkout@v4``) and finally marketplace for bare names.

    Returns:
        The action kind, or None for empty or non-string input
    """
    if not reference or not isinstance(reference, str):
        return None
    if is_local_action(reference):
        return ActionKind.LOCAL
    if reference.startswith(DOCKER_PREFIX):
        return ActionKind.DOCKER
    if "/" in reference:
        return ActionKind.EXTERNAL
    return ActionKind.MARKETPLACE
