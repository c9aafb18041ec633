"""On-chain anchoring of asset issuances.

The pipeline only knows the ``ChainAnchor`` interface. ``IssuanceChainAnchor``
implements it on top of any ``ChainQuery`` backend returning transactions in
Esplora's JSON shape; ``EsploraChainQuery`` is such a backend over HTTP.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import requests

from .commitment import contract_hash_hex
from .errors import ChainVerificationFailed
from .types import Asset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockId:
    height: int
    hash: str


class ChainQuery(Protocol):
    def get_tx(self, txid: str) -> Optional[Dict[str, Any]]:
        """Return the transaction as a dict, or None if it is unknown."""


class ChainAnchor(Protocol):
    def verify_issuance(self, asset: Asset) -> Any:
        """Confirm the asset was issued on-chain, raising ChainVerificationFailed if not."""


class EsploraChainQuery:
    """
    Ledger backend reading transactions from an Esplora HTTP API.

    Args:
        base_url: API root, e.g. "https://blockstream.info/liquid/api"
        session: Optional requests session (shared connection pool)
        timeout: Request timeout in seconds
    """

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 30):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def get_tx(self, txid: str) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url}/tx/{txid}"
        try:
            resp = self.session.get(url, timeout=self.timeout)
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as e:
            raise ChainVerificationFailed(f"chain query failed for {url}: {e}") from e


class IssuanceChainAnchor:
    """Checks that the declared issuance input really issued the asset."""

    def __init__(self, chain: ChainQuery):
        self.chain = chain

    def verify_issuance(self, asset: Asset) -> BlockId:
        txin_ref = asset.issuance_txin
        tx = self.chain.get_tx(txin_ref.txid)
        if tx is None:
            raise ChainVerificationFailed(f"issuance transaction {txin_ref.txid} not found")
        if not isinstance(tx, dict):
            raise ChainVerificationFailed(f"malformed transaction {txin_ref.txid}: expected an object")

        inputs = tx.get("vin") or []
        if not isinstance(inputs, list):
            raise ChainVerificationFailed(f"malformed transaction {txin_ref.txid}: vin is not a list")
        if txin_ref.vin >= len(inputs):
            raise ChainVerificationFailed(f"issuance input {txin_ref.txid}:{txin_ref.vin} not found")
        txin = inputs[txin_ref.vin]
        if not isinstance(txin, dict):
            raise ChainVerificationFailed(f"malformed issuance input {txin_ref.txid}:{txin_ref.vin}")

        prevout = asset.issuance_prevout
        if txin.get("txid") != prevout.txid or txin.get("vout") != prevout.vout:
            raise ChainVerificationFailed("issuance input does not spend the declared prevout")

        issuance = txin.get("issuance")
        if not issuance:
            raise ChainVerificationFailed("input has no asset issuance")
        if not isinstance(issuance, dict):
            raise ChainVerificationFailed("malformed asset issuance")
        if issuance.get("is_reissuance"):
            raise ChainVerificationFailed("input is a reissuance, not the initial issuance")
        if issuance.get("asset_id") != asset.asset_id:
            raise ChainVerificationFailed(
                f"input issued asset {issuance.get('asset_id')}, not {asset.asset_id}"
            )
        if issuance.get("contract_hash") != contract_hash_hex(asset.contract):
            raise ChainVerificationFailed("issuance contract hash does not match the contract")

        status = tx.get("status") or {}
        if not isinstance(status, dict) or not status.get("confirmed"):
            raise ChainVerificationFailed("issuance transaction is not confirmed")

        block = BlockId(height=status.get("block_height"), hash=status.get("block_hash"))
        logger.debug(
            f"verified on-chain issuance of {asset.asset_id} in tx {txin_ref.txid} "
            f"(block {block.height} {block.hash})"
        )
        return block
