"""
Display-name suppliers.

The store asks a supplier for a new alias the first time it sees an author id. The
default produces `adjective-noun` pairs; tests inject deterministic suppliers.
"""

from __future__ import annotations

import random
from typing import Protocol

ADJECTIVES = (
    "amber", "brisk", "calm", "daring", "eager", "fancy", "gentle", "hasty",
    "icy", "jolly", "keen", "lively", "mellow", "nimble", "odd", "plucky",
    "quiet", "rusty", "sunny", "tidy", "upbeat", "vivid", "witty", "zesty",
)

NOUNS = (
    "badger", "comet", "dingo", "ferry", "gecko", "heron", "ibis", "jackal",
    "koala", "lynx", "marmot", "newt", "otter", "pelican", "quokka", "raven",
    "stoat", "tram", "urchin", "vole", "walrus", "yak", "zebra", "wombat",
)


class NameSupplier(Protocol):
    def next_name(self) -> str | None: ...


class RandomNameSupplier:
    """`adjective-noun` aliases drawn from a seedable RNG."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def next_name(self) -> str:
        return f"{self._rng.choice(ADJECTIVES)}-{self._rng.choice(NOUNS)}"
