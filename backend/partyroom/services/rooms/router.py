import json
import logging

from . import lifecycle

logger = logging.getLogger(__name__)


class MessageRouter:
    """Maps an inbound ``type`` to its handler within the sender's room."""

    def __init__(self, coordinator):
        self.coordinator = coordinator
        self.handlers = {
            'join': self.handle_join,
            'hostStartGame': self.handle_host_start_game,
            'flipCard': self.handle_flip_card,
            'cardClick': self.handle_card_click,
            'hostCloseGame': self.handle_host_close_game,
            'gameOver': self.handle_game_over,
        }

    @staticmethod
    def decode(raw):
        """Return the payload as a dict, or None when it is not a JSON object."""
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode('utf-8', errors='replace')
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                return None
        return raw if isinstance(raw, dict) else None

    def dispatch(self, client, room, msg):
        handler = self.handlers.get(msg.get('type'))
        if handler is None:
            logger.info(f"[unhandled] room={room.id} nickname={client.nickname} type={msg.get('type')!r}")
            return
        handler(client, room, msg)

    def handle_join(self, client, room, msg):
        logger.info(f"[join] room={room.id} nickname={client.nickname} host={client.is_host}")
        self.coordinator.broadcaster.broadcast(room, room.player_list_update())

    def handle_host_start_game(self, client, room, msg):
        lifecycle.start_game(
            room,
            client,
            msg.get('numPairs'),
            msg.get('gameTime'),
            self.coordinator.broadcaster,
            self.coordinator.make_round_timer,
            rng=self.coordinator.rng,
            card_template=self.coordinator.card_template,
            max_pairs=self.coordinator.max_pairs,
        )

    def handle_flip_card(self, client, room, msg):
        lifecycle.update_score(room, client, msg.get('score'), self.coordinator.broadcaster)

    def handle_card_click(self, client, room, msg):
        lifecycle.click_card(room, client, msg.get('cardId'), self.coordinator.broadcaster,
                             self.coordinator.schedule_flip_back)

    def handle_host_close_game(self, client, room, msg):
        lifecycle.close_room(room, client, self.coordinator.store, self.coordinator.broadcaster)

    def handle_game_over(self, client, room, msg):
        lifecycle.mark_finished(room, client, bool(msg.get('allPairsFound')), self.coordinator.broadcaster)
