from __future__ import annotations

import uuid
from typing import Any, Callable, Hashable, Iterable, Iterator, TypeVar

T = TypeVar("T")

# Standard DNS namespace; changing it re-keys every stored event
EVENT_NAMESPACE = uuid.UUID("6ba7b810-9dad-11d1-80b4-00c04fd430c8")


def identify(id_prefix: str, date_text: str, name: str) -> str:
    """Stable event id for a scraped race.

    Name-based UUIDv5 over the subject prefix, the raw date text and the
    cleaned race name, so every harvest run yields the same id for the same
    race and store upserts stay idempotent.
    """
    return str(uuid.uuid5(EVENT_NAMESPACE, f"{id_prefix}_{date_text}_{name}"))


def dedup(items: Iterable[T], key_fn: Callable[[T], Hashable]) -> Iterator[T]:
    """Yield items whose key has not been seen yet, keeping order."""
    seen: set[Any] = set()
    for item in items:
        k = key_fn(item)
        if k in seen:
            continue
        seen.add(k)
        yield item
