"""
Sliding window rate limiter shared by every provider dispatcher

Keeps, per provider key, the timestamps of the requests admitted during the
trailing window. Admission and slot booking happen in one locked step so that
interleaved callers can never admit more than max_requests per window.

State lives in memory for the lifetime of the instance; it is the only state
shared between pipeline runs.
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, Optional

from ..config.settings import RateLimitConfig
from ..utils.helpers import current_millis
from ..utils.logger import get_logger


@dataclass
class RateLimitState:
    """
    Admission bookkeeping for one provider key

    Attributes:
        requests: Admitted request timestamps (epoch millis), oldest first
        remaining: Requests still admissible in the current window
        reset_time: Epoch millis at which the oldest booked slot frees up
        last_request: Timestamp of the most recent admission
    """
    requests: Deque[float] = field(default_factory=deque)
    remaining: int = 0
    reset_time: float = 0.0
    last_request: Optional[float] = None


class RateLimiter:
    """
    Per-provider sliding window request counter

    Example:
        limiter = RateLimiter()
        if limiter.is_allowed('lyrics_musixmatch', config.rate_limit):
            ...  # the slot is already booked
    """

    def __init__(self, clock: Callable[[], float] = current_millis):
        """
        Args:
            clock: Returns the current time in epoch milliseconds
        """
        self.clock = clock
        self.logger = get_logger(__name__)
        self._states: Dict[str, RateLimitState] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def _get_state(self, key: str, config: RateLimitConfig, now: float) -> RateLimitState:
        state = self._states.get(key)
        if state is None:
            state = RateLimitState(remaining=config.max_requests, reset_time=now + config.window_millis)
            self._states[key] = state
        return state

    @staticmethod
    def _prune(state: RateLimitState, config: RateLimitConfig, now: float) -> None:
        # A timestamp exactly window_millis old is outside the window
        while state.requests and now - state.requests[0] >= config.window_millis:
            state.requests.popleft()

    def is_allowed(self, key: str, config: RateLimitConfig) -> bool:
        """
        Check admission for key and book the slot when admitted

        Args:
            key: Provider key ("<stage>_<provider>")
            config: Quota for the provider

        Returns:
            True if the request may proceed (a slot has been booked)
        """
        with self._lock_for(key):
            now = self.clock()
            state = self._get_state(key, config, now)
            self._prune(state, config, now)

            if len(state.requests) >= config.max_requests:
                state.remaining = 0
                if state.requests:
                    state.reset_time = state.requests[0] + config.window_millis
                self.logger.debug(f"Rate limit reached for {key}, resets at {state.reset_time:.0f}")
                return False

            state.remaining = config.max_requests - len(state.requests) - 1
            state.requests.append(now)
            state.last_request = now
            state.reset_time = state.requests[0] + config.window_millis
            return True

    def would_allow(self, key: str, config: RateLimitConfig) -> bool:
        """Admission preview that books nothing"""
        with self._lock_for(key):
            state = self._states.get(key)
            if state is None:
                return config.max_requests > 0
            now = self.clock()
            live = sum(1 for ts in state.requests if now - ts < config.window_millis)
            return live < config.max_requests

    def record_request(self, key: str) -> None:
        """
        Note a successful provider call

        The slot was booked by is_allowed(); this only keeps the remaining
        counter in step and never appends a timestamp.
        """
        with self._lock_for(key):
            state = self._states.get(key)
            if state is not None and state.remaining > 0:
                state.remaining -= 1

    def get_remaining_requests(self, key: str) -> int:
        state = self._states.get(key)
        return state.remaining if state is not None else 0

    def get_reset_time(self, key: str) -> float:
        state = self._states.get(key)
        return state.reset_time if state is not None else self.clock()

    def get_retry_after(self, key: str, config: RateLimitConfig) -> float:
        """
        Milliseconds until key admits a request again

        Returns:
            0 when under the limit, otherwise time until the oldest slot expires
        """
        with self._lock_for(key):
            state = self._states.get(key)
            if state is None:
                return 0
            now = self.clock()
            live = [ts for ts in state.requests if now - ts < config.window_millis]
            if len(live) < config.max_requests or not live:
                return 0
            return max(0, live[0] + config.window_millis - now)

    def reset(self, key: str) -> None:
        """Forget all state for key"""
        with self._lock_for(key):
            self._states.pop(key, None)
