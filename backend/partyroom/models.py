import threading
from typing import Dict, List, NamedTuple, Optional, Set

WAITING = 'waiting'
IN_PROGRESS = 'in_progress'
ENDED = 'ended'


class Card(NamedTuple):
    id: int
    value: str

    def to_dict(self):
        return {'id': self.id, 'value': self.value}


class Client:
    """One admitted connection. ``sid`` is only an address, never owned."""

    def __init__(self, sid: str, room_id: str, nickname: str, is_host: bool = False):
        self.sid = sid
        self.room_id = room_id
        self.nickname = nickname
        self.is_host = is_host
        self.score = 0
        self.game_finished = False

    def to_dict(self):
        return {
            'nickname': self.nickname,
            'id': self.sid,
            'isHost': self.is_host,
            'score': self.score,
        }

    def __repr__(self):
        return f"<Client {self.nickname!r} sid={self.sid} host={self.is_host}>"


class Room:
    def __init__(self, room_id: str):
        self.id = room_id
        # non-host clients keyed by connection sid
        self.clients: Dict[str, Client] = {}
        self.host_client: Optional[Client] = None
        self.waiting_for_players = True
        self.game_started = False
        self.game_ended = False
        self.cards: List[Card] = []
        self.game_time = 0
        self.num_pairs = 0
        self.timer = None
        # server-side matching for cardClick, by card id
        self.face_up: Set[int] = set()
        self.matched: Set[int] = set()
        self.pending_flip: List[int] = []
        self.players_ready: Dict[str, bool] = {}
        self.total_players = 0
        # set once the host closes the room and it leaves the store
        self.closed = False
        self.lock = threading.RLock()

    @property
    def state(self) -> str:
        if self.game_started:
            return IN_PROGRESS
        if self.game_ended:
            return ENDED
        return WAITING

    @property
    def is_active(self) -> bool:
        return self.game_started and not self.game_ended

    def players(self) -> List[Client]:
        return list(self.clients.values())

    def find_card(self, card_id) -> Optional[Card]:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    def find_player(self, nickname: str):
        """Return ``(sid, client)`` for the player mapped under ``nickname``."""
        for sid, client in self.clients.items():
            if client.nickname == nickname:
                return sid, client
        return None, None

    def replace_identity(self, client: Client) -> Optional[str]:
        """Map ``client`` by nickname, evicting any prior mapping.

        The prior client's score and finished flag move to the new one.
        Returns the evicted sid, or None when the nickname was free.
        """
        old_sid, old_client = self.find_player(client.nickname)
        if old_client is not None:
            del self.clients[old_sid]
            client.score = old_client.score
            client.game_finished = old_client.game_finished
        client.is_host = False
        self.clients[client.sid] = client
        return old_sid

    def remove_client(self, client: Client) -> bool:
        """Drop ``client`` only if it is still the one mapped under its sid."""
        if client.is_host:
            if self.host_client is client:
                self.host_client = None
                return True
            return False
        if self.clients.get(client.sid) is client:
            del self.clients[client.sid]
            return True
        return False

    def arm_timer(self, timer) -> None:
        self.cancel_timer()
        timer.start()
        self.timer = timer

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    def player_list(self):
        return {
            'data': [c.to_dict() for c in self.clients.values()],
            'waitingForPlayers': self.waiting_for_players,
            'gameStarted': self.game_started,
            'gameEnded': self.game_ended,
        }

    def player_list_update(self):
        payload = {'type': 'playerListUpdate'}
        payload.update(self.player_list())
        return payload

    def final_results(self):
        players = sorted(
            self.clients.values(),
            key=lambda c: (-(c.score or 0), not c.game_finished),
        )
        return [
            {
                'nickname': c.nickname,
                'score': c.score or 0,
                'finished': c.game_finished,
                'rank': index + 1,
                'totalPlayers': len(players),
            }
            for index, c in enumerate(players)
        ]

    def __repr__(self):
        return f"<Room {self.id} state={self.state} players={len(self.clients)} host={self.host_client is not None}>"


def empty_player_list():
    """Player list of a room that does not exist yet."""
    return Room('').player_list()
