import itertools
import random
from collections import Counter

import pytest

from partyroom.services.rooms.cards import RANKS, SUITS, card_value, generate_cards, shuffle


@pytest.mark.parametrize('num_pairs', [1, 8, 13, 52])
def test_deck_has_two_of_each_label(num_pairs):
    cards = generate_cards(num_pairs, rng=random.Random(num_pairs))
    assert len(cards) == 2 * num_pairs
    counts = Counter(card.value for card in cards)
    assert len(counts) == num_pairs
    assert set(counts.values()) == {2}
    assert sorted(card.id for card in cards) == list(range(2 * num_pairs))


def test_pairs_share_value_by_id():
    cards = {card.id: card.value for card in generate_cards(13, rng=random.Random(3))}
    for i in range(13):
        assert cards[2 * i] == cards[2 * i + 1]
    assert cards[0] == '/assets/images/cards/heart_1.png'
    assert cards[2 * 12] == '/assets/images/cards/heart_king.png'


def test_labels_wrap_past_table_sizes():
    assert card_value(13) == '/assets/images/cards/diamond_1.png'
    assert card_value(51) == '/assets/images/cards/spade_king.png'
    assert card_value(52) == card_value(0)
    cards = generate_cards(60, rng=random.Random(1))
    assert len(cards) == 120
    assert all(count % 2 == 0 for count in Counter(c.value for c in cards).values())


def test_custom_template():
    cards = generate_cards(1, template='{rank} of {suit}s')
    assert {c.value for c in cards} == {'1 of hearts'}


@pytest.mark.parametrize('num_pairs', [0, -1])
def test_rejects_non_positive_pairs(num_pairs):
    with pytest.raises(ValueError):
        generate_cards(num_pairs)


def test_tables():
    assert len(SUITS) == 4
    assert len(RANKS) == 13


def test_shuffle_is_uniform():
    # 4 cards -> 24 orderings; chi-square against the uniform distribution
    rng = random.Random(2024)
    trials = 24000
    counts = Counter(tuple(card.id for card in generate_cards(2, rng=rng)) for _ in range(trials))
    assert set(counts) == set(itertools.permutations(range(4)))
    expected = trials / 24
    chi2 = sum((observed - expected) ** 2 / expected for observed in counts.values())
    # 23 degrees of freedom; 80 is far beyond any plausible unbiased outcome
    assert chi2 < 80


def test_shuffle_position_frequencies():
    rng = random.Random(99)
    trials = 20000
    first = Counter()
    for _ in range(trials):
        items = list(range(5))
        shuffle(items, rng)
        first[items[0]] += 1
    for value in range(5):
        assert abs(first[value] / trials - 0.2) < 0.02
