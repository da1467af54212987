"""
Services externes de Bedrock Proxy (signature SigV4, chiffrement des identifiants).
"""

from .crypto import encrypt, decrypt, build_bearer_token
from .signer import sign_request

__all__ = [
    "encrypt",
    "decrypt",
    "build_bearer_token",
    "sign_request",
]
