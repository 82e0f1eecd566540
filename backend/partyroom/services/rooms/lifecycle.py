"""Room state machine: waiting -> in_progress -> ended.

Callers hold ``room.lock``. Every rejection is raised before the room is
touched, so a refused command leaves the room exactly as it was.
"""

import logging
import math
import random
import re

from partyroom.errors import AuthorizationError, ValidationError
from .cards import DEFAULT_TEMPLATE, generate_cards

logger = logging.getLogger(__name__)

TIME_UP = "Time's up!"
HOST_CLOSED = 'Host closed the game'
GAME_COMPLETED = 'Game completed'

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


def parse_int(value):
    """Lenient integer parse: ``8``, ``8.9`` and ``"8 pairs"`` all give 8.

    Returns None for anything without a leading integer (including bools).
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def is_current_host(room, client):
    return client.is_host and room.host_client is client


def start_game(room, sender, num_pairs, game_time, broadcaster, make_timer, rng=random,
               card_template=DEFAULT_TEMPLATE, max_pairs=None):
    """Deal the cards and arm the round timer, then announce the round.

    ``make_timer(room, seconds)`` returns an unstarted timer. It is armed
    before any room state changes, so a timer failure leaves the room waiting.
    """
    if not is_current_host(room, sender):
        logger.info(f"[start-denied] room={room.id} nickname={sender.nickname} not host")
        raise AuthorizationError('Only the host can start the game.')

    pairs = parse_int(num_pairs)
    seconds = parse_int(game_time)
    if pairs is None or seconds is None or pairs <= 0 or seconds <= 0 or (max_pairs and pairs > max_pairs):
        logger.info(f"[start-invalid] room={room.id} numPairs={num_pairs!r} gameTime={game_time!r}")
        raise ValidationError('Invalid game parameters.')
    if room.game_started:
        raise ValidationError('Game already in progress.')
    if not room.waiting_for_players:
        raise ValidationError('Room not in waiting state.')

    cards = generate_cards(pairs, rng=rng, template=card_template)
    room.arm_timer(make_timer(room, seconds))

    room.cards = cards
    room.num_pairs = pairs
    room.game_time = seconds
    room.face_up = set()
    room.matched = set()
    room.pending_flip = []
    room.total_players = len(room.clients)
    room.players_ready = {}
    for client in room.players():
        client.game_finished = False

    room.waiting_for_players = False
    room.game_started = True
    room.game_ended = False

    broadcaster.broadcast(room, {'type': 'gameStarted'})
    broadcaster.broadcast(room, {
        'type': 'gameData',
        'cards': [card.to_dict() for card in room.cards],
        'gameTime': room.game_time,
    })
    broadcaster.broadcast(room, room.player_list_update())
    logger.info(f"[game-start] room={room.id} pairs={pairs} time={seconds}s players={room.total_players}")


def end_game(room, reason, broadcaster):
    """Move an in-progress room to ended. Returns False if it was not running."""
    if not room.game_started or room.game_ended:
        logger.debug(f"[end-skip] room={room.id} state={room.state} reason={reason!r}")
        return False

    room.cancel_timer()
    room.game_started = False
    room.game_ended = True

    results = room.final_results()
    broadcaster.broadcast(room, {'type': 'gameEnded', 'reason': reason, 'finalResults': results})
    broadcaster.broadcast(room, room.player_list_update())
    logger.info(f"[game-end] room={room.id} reason={reason!r} results={results}")
    return True


def close_room(room, sender, store, broadcaster):
    if not is_current_host(room, sender):
        logger.info(f"[close-denied] room={room.id} nickname={sender.nickname} not host")
        raise AuthorizationError('Only the host can close the game.')

    if room.is_active:
        end_game(room, HOST_CLOSED, broadcaster)
    room.cancel_timer()
    store.remove(room.id)
    broadcaster.broadcast(room, {'type': 'roomClosed', 'reason': HOST_CLOSED})
    room.closed = True
    logger.info(f"[room-closed] room={room.id} by={sender.nickname}")


def update_score(room, sender, score, broadcaster):
    # Scores are client-reported and trusted as-is
    value = parse_int(score)
    if value is None:
        logger.info(f"[score-invalid] room={room.id} nickname={sender.nickname} score={score!r}")
        return False
    sender.score = value
    broadcaster.broadcast(room, {'type': 'scoreUpdate', 'nickname': sender.nickname, 'score': sender.score})
    broadcaster.broadcast(room, room.player_list_update())
    return True


def mark_finished(room, sender, all_pairs_found, broadcaster):
    if not room.is_active:
        logger.info(f"[game-over-ignored] room={room.id} nickname={sender.nickname} state={room.state}")
        return False
    sender.game_finished = True
    everyone_done = all(c.game_finished for c in room.players())
    logger.info(f"[player-finished] room={room.id} nickname={sender.nickname} score={sender.score}")
    if all_pairs_found or everyone_done:
        return end_game(room, GAME_COMPLETED, broadcaster)
    broadcaster.broadcast(room, room.player_list_update())
    return False


def click_card(room, sender, card_id, broadcaster, schedule_flip_back):
    """Turn one card face up and settle the pair once two are showing.

    A match scores 10 for ``sender``; a miss is turned back later through
    ``schedule_flip_back(room, card_ids)``. Clicks that cannot apply are
    ignored without a reply.
    """
    if not room.is_active:
        logger.info(f"[click-ignored] room={room.id} nickname={sender.nickname} state={room.state}")
        return False
    card = room.find_card(parse_int(card_id))
    if card is None:
        logger.info(f"[click-invalid] room={room.id} nickname={sender.nickname} cardId={card_id!r}")
        return False
    if card.id in room.face_up or card.id in room.matched:
        logger.debug(f"[click-ignored] room={room.id} card={card.id} already face up")
        return False
    if len(room.pending_flip) >= 2:
        logger.debug(f"[click-ignored] room={room.id} card={card.id} two cards already turned")
        return False

    room.face_up.add(card.id)
    room.pending_flip.append(card.id)
    broadcaster.broadcast(room, {'type': 'cardFlipped', 'cardId': card.id, 'playerNickname': sender.nickname})
    if len(room.pending_flip) < 2:
        return True

    first, second = (room.find_card(i) for i in room.pending_flip)
    pair = [first.id, second.id]
    room.pending_flip = []
    if first.value != second.value:
        logger.info(f"[no-match] room={room.id} nickname={sender.nickname} cards={pair}")
        schedule_flip_back(room, pair)
        return True

    room.matched.update(pair)
    sender.score = (sender.score or 0) + 10
    logger.info(f"[match] room={room.id} nickname={sender.nickname} cards={pair} score={sender.score}")
    broadcaster.broadcast(room, {'type': 'cardsMatched', 'cardIds': pair, 'playerNickname': sender.nickname})
    broadcaster.broadcast(room, {'type': 'scoreUpdate', 'nickname': sender.nickname, 'score': sender.score})
    if len(room.matched) == 2 * room.num_pairs:
        end_game(room, GAME_COMPLETED, broadcaster)
    return True


def flip_back(room, card_ids, broadcaster):
    if not room.is_active:
        logger.debug(f"[flip-back-skip] room={room.id} cards={card_ids} state={room.state}")
        return False
    room.face_up.difference_update(card_ids)
    broadcaster.broadcast(room, {'type': 'cardsFlippedBack', 'cardIds': list(card_ids)})
    return True
