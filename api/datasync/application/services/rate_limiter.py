"""
Limitador de escrituras por minuto (ventana deslizante).
"""
import time
from collections import deque
from typing import Callable, Deque, Optional


class RateLimiter:
    """
    Permite a lo sumo `max_per_minute` operaciones en cualquier ventana de 60s.

    Sin limite (None o <= 0) no espera nunca.
    """

    def __init__(
        self,
        max_per_minute: Optional[int],
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        window_s: float = 60.0,
    ):
        self.max_per_minute = max_per_minute if max_per_minute and max_per_minute > 0 else None
        self._clock = clock
        self._sleep = sleep
        self._window_s = window_s
        self._events: Deque[float] = deque()

    def _prune(self, now: float) -> None:
        while self._events and now - self._events[0] >= self._window_s:
            self._events.popleft()

    def acquire(self, deadline: Optional[float] = None) -> float:
        """
        Bloquea hasta que haya cupo y registra la operacion.

        Args:
            deadline: Instante (en el reloj del limitador) tras el cual no se
                espera mas. Si el cupo llega despues, duerme hasta el deadline
                y retorna sin registrar la operacion.

        Returns:
            float: Segundos esperados
        """
        if self.max_per_minute is None:
            return 0.0

        waited = 0.0
        now = self._clock()
        self._prune(now)
        if len(self._events) >= self.max_per_minute:
            wait_s = self._events[0] + self._window_s - now
            if deadline is not None and now + wait_s > deadline:
                wait_s = max(deadline - now, 0.0)
                if wait_s > 0:
                    self._sleep(wait_s)
                return wait_s
            if wait_s > 0:
                self._sleep(wait_s)
                waited = wait_s
            now = self._clock()
            self._prune(now)
            # Con un reloj que no avanzo (tests), libera el mas antiguo
            if len(self._events) >= self.max_per_minute:
                self._events.popleft()

        self._events.append(now)
        return waited
