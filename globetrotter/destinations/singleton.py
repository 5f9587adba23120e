from __future__ import annotations

from pathlib import Path

from globetrotter.destinations.registry import DestinationStore, load_destination_store


_STORE: DestinationStore | None = None


def init_store(*, path: Path, strict: bool = False) -> DestinationStore:
    """Load the destination store once and cache it.

    Safe to call multiple times; subsequent calls return the already loaded instance.
    """

    global _STORE
    if _STORE is None:
        _STORE = load_destination_store(path=path, strict=strict)
    return _STORE


def reset_store_for_tests() -> None:
    global _STORE
    _STORE = None


def get_store() -> DestinationStore:
    if _STORE is None:
        raise RuntimeError("Destination store not initialized. Call init_store() at startup.")
    return _STORE
