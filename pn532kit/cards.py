"""A small directory of known cards, looked up by their 4-byte UID."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

UID_LENGTH = 4


@dataclass(frozen=True)
class Card:
    """A card holder and the UID of their card."""

    name: str
    surname: str
    uid: bytes

    def __post_init__(self) -> None:
        uid = bytes(self.uid)
        if len(uid) < UID_LENGTH:
            raise ValueError(f"UID must have at least {UID_LENGTH} bytes")
        object.__setattr__(self, "uid", uid[:UID_LENGTH])


class CardDirectory:
    """Cards kept in the order they were added."""

    def __init__(self) -> None:
        self._cards: list[Card] = []

    def add(self, card: Card | None) -> None:
        """Append a card; ``None`` is ignored."""
        if card is None:
            return
        self._cards.append(card)

    def find_by_uid(self, uid: bytes) -> Card | None:
        """Return the first card whose UID matches the first 4 bytes of ``uid``."""
        key = bytes(uid)[:UID_LENGTH]
        return next((card for card in self._cards if card.uid == key), None)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    def __len__(self) -> int:
        return len(self._cards)