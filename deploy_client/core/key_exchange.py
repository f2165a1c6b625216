"""
Ephemeral key exchange for encrypted deployment outputs.

Generates an age X25519 identity per deployment. The public recipient string
travels with the creation request so the control plane can encrypt outputs
for this caller only; the private identity stays in process memory and is
released as soon as the outputs have been decrypted or the wait aborted.

Dependencies: pyrage
System role: Key material for output confidentiality
"""

from types import TracebackType

import pyrage
from pyrage import x25519

from deploy_client.core.exceptions import KeyMaterialReleasedError


class KeyPair:
    """
    Ephemeral age X25519 key pair.

    Use as a context manager so the private half is dropped on every exit
    path. Never persisted; repr never includes private material.
    """

    def __init__(self, identity: x25519.Identity) -> None:
        self._identity: x25519.Identity | None = identity
        self._recipient = str(identity.to_public())

    @property
    def recipient(self) -> str:
        """Public half in the age recipient encoding (``age1...``)."""
        return self._recipient

    @property
    def released(self) -> bool:
        return self._identity is None

    def decrypt(self, ciphertext: bytes) -> bytes:
        """
        Decrypt an age ciphertext addressed to this key pair.

        Args:
            ciphertext: Binary age ciphertext

        Returns:
            bytes: Plaintext

        Raises:
            pyrage.DecryptError: If the ciphertext is malformed or was not
                encrypted for this key pair's recipient
            KeyMaterialReleasedError: If the private half was already released
        """
        if self._identity is None:
            raise KeyMaterialReleasedError("Key pair was released before decryption")
        return pyrage.decrypt(ciphertext, [self._identity])

    def release(self) -> None:
        """Drop the private identity. Safe to call more than once."""
        self._identity = None

    def __enter__(self) -> "KeyPair":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self.released else "active"
        return f"KeyPair(recipient={self._recipient!r}, {state})"


class KeyExchange:
    """Factory for ephemeral key pairs."""

    @staticmethod
    def generate() -> KeyPair:
        """
        Generate a fresh key pair.

        Failures from the entropy source propagate unchanged; they are not
        retried.

        Returns:
            KeyPair: New, never-before-used key pair
        """
        return KeyPair(x25519.Identity.generate())


def encrypt_for(recipient: str, plaintext: bytes) -> bytes:
    """
    Encrypt plaintext for an age recipient string.

    This is what the control plane does with the submitted recipient; the
    client uses it only for self-checks.

    Args:
        recipient: age recipient (``age1...``)
        plaintext: Bytes to encrypt

    Returns:
        bytes: Binary age ciphertext
    """
    return pyrage.encrypt(plaintext, [x25519.Recipient.from_str(recipient)])
