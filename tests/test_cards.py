import pytest

from pn532kit.cards import Card, CardDirectory


def test_find_by_uid_returns_matching_card():
    directory = CardDirectory()
    alice = Card("Alice", "Smith", b"\x01\x02\x03\x04")
    bob = Card("Bob", "Jones", b"\x0a\x0b\x0c\x0d")
    directory.add(alice)
    directory.add(bob)
    assert directory.find_by_uid(b"\x0a\x0b\x0c\x0d") is bob
    assert directory.find_by_uid(b"\x01\x02\x03\x04") is alice


def test_find_by_uid_missing_returns_none():
    directory = CardDirectory()
    directory.add(Card("Alice", "Smith", b"\x01\x02\x03\x04"))
    assert directory.find_by_uid(b"\x01\x02\x03\x05") is None


def test_find_in_empty_directory():
    assert CardDirectory().find_by_uid(b"\x00\x00\x00\x00") is None


def test_uid_is_cut_to_four_bytes():
    card = Card("Carol", "White", b"\x01\x02\x03\x04\x05\x06\x07")
    assert card.uid == b"\x01\x02\x03\x04"


def test_lookup_uses_first_four_bytes_of_query():
    directory = CardDirectory()
    card = Card("Carol", "White", [1, 2, 3, 4])
    directory.add(card)
    assert directory.find_by_uid(b"\x01\x02\x03\x04\x99\x98\x97") is card


def test_short_uid_rejected():
    with pytest.raises(ValueError):
        Card("Dan", "Brown", b"\x01\x02\x03")


def test_first_match_wins():
    directory = CardDirectory()
    first = Card("Eve", "Green", b"\x05\x05\x05\x05")
    second = Card("Frank", "Black", b"\x05\x05\x05\x05")
    directory.add(first)
    directory.add(second)
    assert directory.find_by_uid(b"\x05\x05\x05\x05") is first


def test_iteration_order_and_length():
    directory = CardDirectory()
    cards = [Card(f"n{i}", f"s{i}", bytes([i, i, i, i])) for i in range(3)]
    for card in cards:
        directory.add(card)
    assert list(directory) == cards
    assert len(directory) == 3


def test_adding_none_is_ignored():
    directory = CardDirectory()
    directory.add(None)
    assert len(directory) == 0
    assert list(directory) == []