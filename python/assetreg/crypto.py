"""Cryptographic utilities for assetreg."""
import base64
import binascii
import hashlib
import json
import struct
from typing import Any

from coincurve import PrivateKey, PublicKey
from coincurve.context import Context
from coincurve.ecdsa import cdata_to_der, deserialize_compact

from .errors import MalformedKey, MalformedSignature, SignatureInvalid

MESSAGE_MAGIC = b"Bitcoin Signed Message:\n"

# Shared by every verification call and never mutated after import.
EC = Context(name="assetreg")

_SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


class CryptoUtils:
    """Utility class for cryptographic operations."""

    @staticmethod
    def sha256(data: bytes) -> bytes:
        """Generate SHA-256 digest of data."""
        return hashlib.sha256(data).digest()

    @staticmethod
    def sha256d(data: bytes) -> bytes:
        """Double SHA-256, as used for transaction and message hashes."""
        return hashlib.sha256(hashlib.sha256(data).digest()).digest()

    @staticmethod
    def canonical_json(data: Any) -> str:
        """Create canonical JSON representation for hashing.

        Keys are sorted at every level and no whitespace is emitted.
        """
        return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)

    @staticmethod
    def compact_json(data: Any) -> str:
        """Compact JSON that keeps the key order of ``data``."""
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False, allow_nan=False)

    @staticmethod
    def varint(n: int) -> bytes:
        """Bitcoin CompactSize encoding."""
        if n < 0xFD:
            return struct.pack("<B", n)
        if n <= 0xFFFF:
            return b"\xfd" + struct.pack("<H", n)
        if n <= 0xFFFFFFFF:
            return b"\xfe" + struct.pack("<I", n)
        return b"\xff" + struct.pack("<Q", n)

    @staticmethod
    def signed_msg_hash(message: str) -> bytes:
        """Hash a message the way "signmessage" wallets do before signing."""
        msg = message.encode("utf-8")
        data = (
            CryptoUtils.varint(len(MESSAGE_MAGIC)) + MESSAGE_MAGIC
            + CryptoUtils.varint(len(msg)) + msg
        )
        return CryptoUtils.sha256d(data)

    @staticmethod
    def decode_pubkey(pubkey_hex: str) -> PublicKey:
        """Parse a hex-encoded secp256k1 public key.

        Raises:
            MalformedKey: on bad hex or a point not on the curve
        """
        try:
            raw = bytes.fromhex(pubkey_hex)
        except ValueError as e:
            raise MalformedKey(f"invalid contract.issuer_pubkey hex: {e}") from e
        try:
            return PublicKey(raw, context=EC)
        except (ValueError, TypeError) as e:
            raise MalformedKey(f"invalid contract.issuer_pubkey: {e}") from e

    @staticmethod
    def decode_signature(signature: str) -> bytes:
        """Decode a base64 signature, rejecting anything that is not 64 or 65 bytes."""
        try:
            raw = base64.b64decode(signature, validate=True)
        except (binascii.Error, ValueError) as e:
            raise MalformedSignature(f"invalid signature base64: {e}") from e
        if len(raw) not in (64, 65):
            raise MalformedSignature(f"signature must be 64 or 65 bytes, got {len(raw)}")
        return raw

    @staticmethod
    def verify_message(public_key: PublicKey, signature: bytes, message: str) -> None:
        """Verify a signed-message signature against a known public key.

        65-byte signatures are compact recoverable (``header || r || s``) and
        are checked by recovering the signer. 64-byte ones are plain
        ``r || s`` and are verified directly.

        Raises:
            SignatureInvalid: if the signature does not match
            MalformedSignature: on an unusable encoding
        """
        digest = CryptoUtils.signed_msg_hash(message)

        if len(signature) == 65:
            header = signature[0]
            if not 27 <= header <= 34:
                raise MalformedSignature(f"invalid recoverable signature header {header}")
            recid = (header - 27) & 3
            try:
                recovered = PublicKey.from_signature_and_message(
                    signature[1:] + bytes([recid]), digest, hasher=None, context=EC
                )
            except ValueError as e:
                raise SignatureInvalid(f"cannot recover signer: {e}") from e
            if recovered.format(compressed=False) != public_key.format(compressed=False):
                raise SignatureInvalid("signature was not made by the issuer key")
            return

        if len(signature) != 64:
            raise MalformedSignature(f"signature must be 64 or 65 bytes, got {len(signature)}")

        # libsecp256k1 only accepts low-s signatures
        r, s = signature[:32], int.from_bytes(signature[32:], "big")
        if s > _SECP256K1_ORDER // 2:
            s = _SECP256K1_ORDER - s
        try:
            der = cdata_to_der(deserialize_compact(r + s.to_bytes(32, "big"), context=EC), context=EC)
        except ValueError as e:
            raise MalformedSignature(f"invalid compact signature: {e}") from e
        if not public_key.verify(der, digest, hasher=None):
            raise SignatureInvalid("signature verification failed")

    @staticmethod
    def load_private_key(private_key_hex: str) -> PrivateKey:
        """Parse a hex-encoded 32-byte secp256k1 secret.

        Raises:
            MalformedKey: on bad hex or a secret outside the curve order
        """
        try:
            return PrivateKey(bytes.fromhex(private_key_hex), context=EC)
        except (ValueError, TypeError) as e:
            raise MalformedKey(f"invalid private key: {e}") from e

    @staticmethod
    def sign_message(message: str, private_key_hex: str) -> str:
        """Sign a message with a compressed recoverable signature.

        Args:
            message: Message to sign
            private_key_hex: 32-byte secp256k1 secret in hex

        Returns:
            Base64-encoded 65-byte signature
        """
        key = CryptoUtils.load_private_key(private_key_hex)
        sig = key.sign_recoverable(CryptoUtils.signed_msg_hash(message), hasher=None)
        header = 27 + sig[64] + 4
        return base64.b64encode(bytes([header]) + sig[:64]).decode()

    @staticmethod
    def public_key_hex(private_key_hex: str) -> str:
        """Compressed public key (hex) for a private key."""
        key = CryptoUtils.load_private_key(private_key_hex)
        return key.public_key.format(compressed=True).hex()
