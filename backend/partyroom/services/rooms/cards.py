import random

from partyroom.models import Card

SUITS = ('heart', 'diamond', 'club', 'spade')
RANKS = ('1', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'jack', 'queen', 'king')
DEFAULT_TEMPLATE = '/assets/images/cards/{suit}_{rank}.png'


def card_value(index: int, template: str = DEFAULT_TEMPLATE) -> str:
    """Face label of the ``index``-th pair, wrapping through suits and ranks."""
    rank = RANKS[index % len(RANKS)]
    suit = SUITS[(index // len(RANKS)) % len(SUITS)]
    return template.format(suit=suit, rank=rank)


def shuffle(items, rng=random) -> None:
    """Fisher-Yates shuffle in place."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]


def generate_cards(num_pairs: int, rng=random, template: str = DEFAULT_TEMPLATE):
    """Build ``num_pairs`` matching pairs and return them shuffled.

    Pair ``i`` gets ids ``2i`` and ``2i + 1``. Past 52 pairs the labels
    repeat, so a label then appears four (or more) times.
    """
    if num_pairs <= 0:
        raise ValueError(f"num_pairs must be positive, got {num_pairs}")
    cards = []
    for i in range(num_pairs):
        value = card_value(i, template)
        cards.append(Card(id=i * 2, value=value))
        cards.append(Card(id=i * 2 + 1, value=value))
    shuffle(cards, rng)
    return cards
