import logging
import threading
import time

logger = logging.getLogger(__name__)

# Longest single sleep, so a cancelled timer task exits soon after cancel()
POLL_INTERVAL_SEC = 1.0


class GameTimer:
    """Single-shot countdown that calls ``callback`` once after ``delay`` seconds.

    - Runs as a Socket.IO background task (thread, eventlet or gevent,
      whatever the server was started with)
    - ``cancel()`` before expiry guarantees the callback never runs
    - Logs a heartbeat every ``heartbeat`` seconds when enabled
    """

    def __init__(self, delay, callback=None, label='', start_task=None, sleep=None, heartbeat=0):
        self.delay = delay
        self.callback = callback
        self.label = label
        self.heartbeat = heartbeat
        self._start_task = start_task
        self._sleep = sleep
        self._cancelled = threading.Event()
        self._started = False
        self._fired = False
        self.deadline = None

    @property
    def cancelled(self):
        return self._cancelled.is_set()

    @property
    def fired(self):
        return self._fired

    @property
    def active(self):
        return self._started and not self._fired and not self.cancelled

    def remaining(self):
        if self.deadline is None:
            return float(self.delay)
        return max(0.0, self.deadline - time.time())

    def start(self):
        if self._started:
            raise RuntimeError('timer already started')
        if self.callback is None:
            raise RuntimeError('timer has no callback')
        self._started = True
        self.deadline = time.time() + self.delay
        logger.info(f"[timer-set] {self.label} duration={self.delay}s deadline={self.deadline:.0f}")
        start_task, _ = self._runtime()
        start_task(self._run)

    def cancel(self):
        if not self._cancelled.is_set() and not self._fired:
            logger.info(f"[timer-cancel] {self.label} remaining={self.remaining():.1f}s")
        self._cancelled.set()

    def _runtime(self):
        if self._start_task is not None and self._sleep is not None:
            return self._start_task, self._sleep
        from partyroom import socketio
        return self._start_task or socketio.start_background_task, self._sleep or socketio.sleep

    def _run(self):
        _, sleep = self._runtime()
        next_heartbeat = time.time() + self.heartbeat if self.heartbeat > 0 else None
        while not self.cancelled:
            now = time.time()
            left = self.deadline - now
            if left <= 0:
                break
            step = min(left, POLL_INTERVAL_SEC)
            if next_heartbeat is not None:
                step = min(step, max(0.0, next_heartbeat - now))
            sleep(step)
            if next_heartbeat is not None and time.time() >= next_heartbeat:
                logger.info(f"[timer-heartbeat] {self.label} remaining={self.remaining():.0f}s")
                next_heartbeat += self.heartbeat

        if self.cancelled:
            logger.debug(f"[timer-abort] {self.label} cancelled before expiry")
            return
        self._fired = True
        logger.info(f"[timer-fire] {self.label}")
        try:
            self.callback()
        except Exception:
            logger.exception(f"[timer-error] {self.label} callback failed")
