"""
Deadline unique d'un appel Bedrock, consommation du stream comprise.

Chaque attente réseau (envoi, lecture du body, lecture d'un chunk) passe
par `Deadline.scope()`: le délai restant est partagé par toutes les
attentes au lieu d'être réarmé à chaque fois.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from ..core.constants import DEFAULT_DEADLINE_SECONDS
from ..core.exceptions import UpstreamTimeoutError


class Deadline:
    """Échéance absolue + signal d'annulation coopératif."""

    def __init__(self, seconds: float = DEFAULT_DEADLINE_SECONDS):
        self.seconds = seconds
        self._loop = asyncio.get_running_loop()
        self.when = self._loop.time() + seconds
        self._cancelled = False

    def remaining(self) -> float:
        return max(0.0, self.when - self._loop.time())

    @property
    def expired(self) -> bool:
        return self._loop.time() >= self.when

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Arrête la séquence d'événements au prochain pull."""
        self._cancelled = True

    @asynccontextmanager
    async def scope(self) -> AsyncIterator[None]:
        """
        Exécute le bloc sous l'échéance.

        Raises:
            UpstreamTimeoutError: Si l'échéance est atteinte pendant le bloc
        """
        timeout = asyncio.timeout_at(self.when)
        try:
            async with timeout:
                yield
        except TimeoutError as e:
            if not timeout.expired():
                raise
            self._cancelled = True
            raise UpstreamTimeoutError(
                f"Bedrock request exceeded the {self.seconds:g}s deadline",
                timeout=self.seconds
            ) from e
