"""
Signature SigV4 des requêtes Bedrock (délégée à botocore).
"""
from typing import Dict, Optional

from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials as BotoCredentials

from ..core.constants import (
    BEDROCK_SERVICE_NAME,
    EVENTSTREAM_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
)


def sign_request(
    method: str,
    url: str,
    region: str,
    access_key_id: str,
    secret_access_key: str,
    body: str,
    service: str = BEDROCK_SERVICE_NAME,
    is_streaming: bool = True,
    additional_headers: Optional[Dict[str, str]] = None
) -> Dict[str, str]:
    """
    Produit le jeu complet de headers signés pour une requête.

    Args:
        method: Méthode HTTP
        url: URL complète (chemin déjà encodé)
        region: Région AWS
        access_key_id: Access key
        secret_access_key: Secret key
        body: Body sérialisé, tel qu'il sera envoyé
        service: Nom du service pour le scope de signature
        is_streaming: Si True, accepte le format eventstream
        additional_headers: Headers spécifiques à la famille de modèle

    Returns:
        Headers à envoyer tels quels
    """
    headers = {
        "content-type": JSON_CONTENT_TYPE,
        "accept": EVENTSTREAM_CONTENT_TYPE if is_streaming else JSON_CONTENT_TYPE,
    }
    headers.update(additional_headers or {})

    request = AWSRequest(method=method, url=url, data=body.encode("utf-8"), headers=headers)
    SigV4Auth(
        BotoCredentials(access_key_id, secret_access_key),
        service,
        region
    ).add_auth(request)

    return {key: value for key, value in request.headers.items()}
