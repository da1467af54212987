"""
Chiffrement symétrique des identifiants AWS transportés dans le bearer token.

Format: enveloppe OpenSSL "Salted__" (compatible CryptoJS `AES.encrypt(data,
passphrase)`), base64 de `b"Salted__" + sel(8) + ciphertext`, clé et IV
dérivés par EVP_BytesToKey (MD5), AES-256-CBC avec padding PKCS7.
"""
import base64
import binascii
import hashlib
import logging
import os
from typing import Tuple

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

logger = logging.getLogger(__name__)

_SALT_HEADER = b"Salted__"
_KEY_SIZE = 32
_IV_SIZE = 16


def _evp_bytes_to_key(passphrase: bytes, salt: bytes) -> Tuple[bytes, bytes]:
    """Dérivation OpenSSL historique (une itération MD5)."""
    derived = b""
    block = b""
    while len(derived) < _KEY_SIZE + _IV_SIZE:
        block = hashlib.md5(block + passphrase + salt).digest()
        derived += block
    return derived[:_KEY_SIZE], derived[_KEY_SIZE:_KEY_SIZE + _IV_SIZE]


def encrypt(plaintext: str, passphrase: str) -> str:
    """
    Chiffre une valeur pour l'inclure dans un bearer token.

    Args:
        plaintext: Valeur en clair (région, access key, secret key)
        passphrase: Clé partagée avec le serveur (ENCRYPTION_KEY)

    Returns:
        Chaîne base64, vide si `plaintext` est vide
    """
    if not plaintext:
        return ""
    salt = os.urandom(8)
    key, iv = _evp_bytes_to_key(passphrase.encode("utf-8"), salt)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return base64.b64encode(_SALT_HEADER + salt + ciphertext).decode("ascii")


def decrypt(token: str, passphrase: str) -> str:
    """
    Déchiffre une valeur issue d'un bearer token.

    Contrat: renvoie une chaîne vide si le déchiffrement échoue (base64
    invalide, mauvaise clé, padding corrompu, texte non UTF-8). L'appelant
    traite une valeur vide comme un échec.
    """
    if not token or not passphrase:
        return ""
    try:
        raw = base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError):
        logger.debug("[CRYPTO] Token non base64")
        return ""

    if len(raw) < 16 + _IV_SIZE or not raw.startswith(_SALT_HEADER):
        logger.debug("[CRYPTO] Enveloppe Salted__ absente ou tronquée")
        return ""

    salt, ciphertext = raw[8:16], raw[16:]
    if len(ciphertext) % _IV_SIZE:
        return ""

    key, iv = _evp_bytes_to_key(passphrase.encode("utf-8"), salt)
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()

    try:
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plain = unpadder.update(padded) + unpadder.finalize()
        return plain.decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        logger.debug("[CRYPTO] Déchiffrement invalide (clé ou padding)")
        return ""


def build_bearer_token(region: str, access_key: str, secret_key: str, passphrase: str) -> str:
    """Construit l'en-tête `Authorization` triple attendu par le proxy."""
    parts = [encrypt(value, passphrase) for value in (region, access_key, secret_key)]
    return "Bearer " + ":".join(parts)
