from __future__ import annotations

import random
from typing import List, MutableSequence, Optional, Sequence, Tuple, TypeVar

from .board import Board, Symbol

T = TypeVar("T")

# Icon names of the eight pairs on the standard board.
DEFAULT_ALPHABET: Tuple[Symbol, ...] = (
    "heart",
    "star",
    "bolt",
    "moon",
    "leaf",
    "gem",
    "fire",
    "music",
)


def fisher_yates(items: MutableSequence[T], rng: Optional[random.Random] = None) -> MutableSequence[T]:
    """Shuffles items in place: for i from the last index down to 1, swap with a uniform j in [0, i]."""
    rand = rng or random.Random()
    for i in range(len(items) - 1, 0, -1):
        j = rand.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def validate_alphabet(alphabet: Sequence[Symbol]) -> Tuple[Symbol, ...]:
    symbols = tuple(alphabet)
    if not symbols:
        raise ValueError("alphabet must contain at least one symbol")
    if len(set(symbols)) != len(symbols):
        raise ValueError("alphabet symbols must be distinct")
    for s in symbols:
        if not isinstance(s, str) or not s:
            raise ValueError(f"invalid symbol: {s!r}")
    return symbols


def deal_board(
    alphabet: Sequence[Symbol] = DEFAULT_ALPHABET,
    seed: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Board:
    """Deals a fresh all-hidden board with every symbol of the alphabet twice, shuffled."""
    symbols = validate_alphabet(alphabet)
    rand = rng if rng is not None else random.Random(seed)
    deck: List[Symbol] = list(symbols) + list(symbols)
    fisher_yates(deck, rand)
    return Board.from_symbols(deck)
