"""
Keypair loading for the primary identity and delegated payers
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Sequence, Union

import base58
from nacl.signing import SigningKey

from assetmint.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SECRET_KEY_LENGTH = 64

KeypairSource = Union[str, bytes, Sequence[int]]


@dataclass(frozen=True)
class Keypair:
    """ed25519 keypair in the 64-byte secret layout used by Solana wallets"""
    secret_key: bytes

    @property
    def public_key_bytes(self) -> bytes:
        return self.secret_key[32:]

    @property
    def public_key(self) -> str:
        return base58.b58encode(self.public_key_bytes).decode("ascii")

    @property
    def signing_key(self) -> SigningKey:
        # First half of the secret is the ed25519 seed
        return SigningKey(self.secret_key[:32])

    def sign(self, message: bytes) -> bytes:
        """Detached 64-byte ed25519 signature"""
        return self.signing_key.sign(message).signature

    @classmethod
    def from_seed(cls, seed: bytes) -> "Keypair":
        signing_key = SigningKey(bytes(seed))
        return cls(secret_key=bytes(seed) + signing_key.verify_key.encode())

    def __repr__(self) -> str:
        return f"Keypair(public_key={self.public_key})"


def load_keypair(source: KeypairSource) -> Keypair:
    """
    Load a keypair from a keypair file path, a base58 secret or raw bytes

    Args:
        source: Path to a JSON array keypair file, base58-encoded secret,
            or the secret itself as bytes / list of ints

    Returns:
        Loaded Keypair
    """
    if source is None or source == "" or source == b"":
        raise ConfigurationError("Keypair is required!")

    if isinstance(source, str):
        if os.path.exists(source):
            secret = _read_keypair_file(source)
        elif source.endswith(".json"):
            raise ConfigurationError(f"Keypair file not found at: {source}")
        else:
            try:
                secret = base58.b58decode(source)
            except ValueError as e:
                raise ConfigurationError(f"Keypair is neither a file nor a base58 secret: {e}") from e
    else:
        secret = bytes(source)

    if len(secret) != SECRET_KEY_LENGTH:
        raise ConfigurationError(f"Expected a {SECRET_KEY_LENGTH}-byte secret key, got {len(secret)} bytes")

    keypair = Keypair(secret_key=secret)
    if keypair.signing_key.verify_key.encode() != keypair.public_key_bytes:
        raise ConfigurationError("Keypair secret does not match its public key")
    logger.info(f"Loaded keypair public key: {keypair.public_key}")
    return keypair


def _read_keypair_file(path: str) -> bytes:
    try:
        with open(path, 'r') as f:
            return bytes(json.load(f))
    except (OSError, ValueError, TypeError) as e:
        raise ConfigurationError(f"Could not read keypair file {path}: {e}") from e
