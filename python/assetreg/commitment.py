"""Asset identifier commitment.

An asset id is derived from the outpoint spent by its issuance and the hash
of its contract::

    entropy  = midstate(sha256d(prevout) || sha256(contract))
    asset_id = midstate(entropy || 0x00 * 32)

``midstate`` is a single SHA-256 compression without padding. Both steps
come from libwally's Elements issuance functions, so ids computed here
agree with the ones the chain assigns.
"""
import logging
from typing import Any, Dict

import wallycore as wally

from .crypto import CryptoUtils
from .errors import CommitmentMismatch, MalformedInput
from .types import Asset, OutPoint

logger = logging.getLogger(__name__)


def contract_hash(contract: Dict[str, Any]) -> bytes:
    """SHA-256 of the canonical contract serialization (raw digest bytes)."""
    try:
        serialized = CryptoUtils.canonical_json(contract)
    except (TypeError, ValueError) as e:
        raise MalformedInput(f"contract cannot be serialized: {e}") from e
    return CryptoUtils.sha256(serialized.encode("utf-8"))


def contract_hash_hex(contract: Dict[str, Any]) -> str:
    """Contract hash in display (byte-reversed) hex, as ledger APIs show it."""
    return contract_hash(contract)[::-1].hex()


def generate_asset_entropy(outpoint: OutPoint, contract_digest: bytes) -> bytes:
    # libwally takes the txid in internal (byte-reversed) order
    txhash = bytes.fromhex(outpoint.txid)[::-1]
    return bytes(wally.tx_elements_issuance_generate_entropy(txhash, outpoint.vout, contract_digest))


def asset_id_from_entropy(entropy: bytes) -> bytes:
    return bytes(wally.tx_elements_issuance_calculate_asset(entropy))


def derive_asset_id(outpoint: OutPoint, contract_digest: bytes) -> str:
    """Derive the public asset id (display hex) for an issuance."""
    entropy = generate_asset_entropy(outpoint, contract_digest)
    return asset_id_from_entropy(entropy)[::-1].hex()


def verify_commitment(asset: Asset) -> Dict[str, Any]:
    """Check that the asset id commits to the declared prevout and contract.

    Raises:
        CommitmentMismatch: if the derived id differs from ``asset.asset_id``
    """
    digest = contract_hash(asset.contract)
    asset_id = derive_asset_id(asset.issuance_prevout, digest)

    if asset_id != asset.asset_id:
        raise CommitmentMismatch(
            f"invalid asset commitment: expected {asset_id}, got {asset.asset_id}"
        )

    logger.debug(
        f"verified asset commitment, asset id {asset_id} commits to prevout "
        f"{asset.issuance_prevout.txid}:{asset.issuance_prevout.vout} "
        f"and contract hash {digest[::-1].hex()}"
    )
    return {"asset_id": asset_id, "contract_hash": digest[::-1].hex()}
