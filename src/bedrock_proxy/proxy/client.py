"""
Client HTTPX pour les appels Bedrock.

Pourquoi pas de retry ici:
- Un appel d'inférence n'est pas idempotent côté quota
- La deadline de l'orchestrateur est l'unique budget de l'appel
- Le client relance lui-même à un niveau supérieur s'il le souhaite
"""
import logging
from typing import Dict, Optional

import httpx

from ..core.constants import CONNECT_TIMEOUT_SECONDS, DEFAULT_DEADLINE_SECONDS
from ..core.exceptions import TransportError, UpstreamTimeoutError

logger = logging.getLogger(__name__)


class ProxyClient:
    """
    Client HTTP vers le runtime Bedrock.

    Gère:
    - Timeout de connexion court, timeout de lecture aligné sur la deadline
    - Traduction des erreurs httpx en erreurs du proxy
    - Fermeture du client (une connexion par requête, pas de pool partagé)
    """

    def __init__(
        self,
        timeout: float = DEFAULT_DEADLINE_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.timeout = timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=CONNECT_TIMEOUT_SECONDS),
                transport=self.transport,
            )
        return self._client

    async def __aenter__(self) -> "ProxyClient":
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def build_request(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        content: str
    ) -> httpx.Request:
        """Construit une requête HTTPX."""
        return httpx.Request(method, url, headers=headers, content=content)

    async def send_streaming(self, request: httpx.Request) -> httpx.Response:
        """
        Envoie la requête sans lire le body.

        Le body reste à consommer (`aread()` ou `aiter_bytes()`), puis la
        réponse et le client doivent être fermés par l'appelant.

        Raises:
            UpstreamTimeoutError: Timeout httpx (connexion ou lecture)
            TransportError: Erreur réseau
        """
        client = self._get_client()
        try:
            return await client.send(request, stream=True)
        except httpx.TimeoutException as e:
            logger.error(f"🔴 [CLIENT] Timeout vers {request.url.host}: {e}")
            raise UpstreamTimeoutError(f"Timeout contacting Bedrock: {e}", timeout=self.timeout) from e
        except httpx.TransportError as e:
            logger.error(f"🔴 [CLIENT] Erreur réseau vers {request.url.host}: {e}")
            raise TransportError(f"Network error contacting Bedrock: {e}", error_type=type(e).__name__) from e


def create_proxy_client(
    timeout: float = DEFAULT_DEADLINE_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> ProxyClient:
    """
    Crée un client proxy.

    Args:
        timeout: Timeout de lecture en secondes
        transport: Transport httpx alternatif (tests, replay)

    Returns:
        Instance de ProxyClient
    """
    return ProxyClient(timeout=timeout, transport=transport)
