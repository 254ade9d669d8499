"""RSA key pairs, message encryption and the public-key list format."""

from __future__ import annotations

from dataclasses import dataclass

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

_PEM_DECODE_FAILED = "не удалось декодировать PEM"
_WRONG_KEY_TYPE = "неверный тип ключа"


class KeyError_(ValueError):
    """A key could not be generated or loaded, or a message could not be processed."""


@dataclass(frozen=True)
class KeyPair:
    """An RSA key pair as PEM text: PKCS#1 private key and SubjectPublicKeyInfo public key."""

    private_pem: str
    public_pem: str


def generate_key_pair(bits: int = 2048) -> KeyPair:
    """Generate a fresh RSA key pair of the given size."""
    try:
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    except ValueError as exc:
        raise KeyError_(str(exc)) from exc

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return KeyPair(private_pem=private_pem.decode("ascii"), public_pem=public_pem.decode("ascii"))


def _load_public_key(public_pem: str) -> rsa.RSAPublicKey:
    try:
        key = serialization.load_pem_public_key(public_pem.encode("utf-8"))
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise KeyError_(_PEM_DECODE_FAILED) from exc
    if not isinstance(key, rsa.RSAPublicKey):
        raise KeyError_(_WRONG_KEY_TYPE)
    return key


def _load_private_key(private_pem: str) -> rsa.RSAPrivateKey:
    try:
        key = serialization.load_pem_private_key(private_pem.encode("utf-8"), None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise KeyError_(_PEM_DECODE_FAILED) from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyError_(_WRONG_KEY_TYPE)
    return key


def encrypt_with_public_key(message: str, public_pem: str) -> bytes:
    """Encrypt a text message with an RSA public key using PKCS#1 v1.5 padding."""
    key = _load_public_key(public_pem)
    try:
        return key.encrypt(message.encode("utf-8"), padding.PKCS1v15())
    except ValueError as exc:
        raise KeyError_(str(exc)) from exc


def decrypt_with_private_key(ciphertext: bytes, private_pem: str) -> str:
    """Decrypt a PKCS#1 v1.5 ciphertext with an RSA private key."""
    key = _load_private_key(private_pem)
    try:
        plaintext = key.decrypt(ciphertext, padding.PKCS1v15())
    except ValueError as exc:
        raise KeyError_(str(exc) or "decryption failed") from exc
    return plaintext.decode("utf-8", errors="replace")


def parse_public_keys(text: str) -> dict[str, str]:
    """Parse a comma separated list of ``nick:key`` pairs, skipping malformed entries."""
    keys: dict[str, str] = {}
    for pair in text.split(","):
        nick, sep, public_key = pair.partition(":")
        if sep:
            keys[nick] = public_key
    return keys