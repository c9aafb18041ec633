"""
assetreg - Python Implementation

Verification of issued asset records: the asset id must commit to its
issuance outpoint and contract, its fields must be signed by the issuer or
embedded in the contract, and it may be anchored on-chain and linked to a
domain name.
"""

from .verify import AssetVerifier, verify_asset
from .types import (
    Asset,
    AssetFields,
    DomainName,
    OutPoint,
    TxInput,
    FieldRules,
    VerificationStatus,
    VerificationResult,
    VerificationOptions,
    StageResult,
)
from .errors import VerificationStage, AssetError
from .crypto import CryptoUtils
from .commitment import derive_asset_id
from .authenticity import format_sig_msg
from .registry import AssetRegistry

__version__ = "0.1.0"
__all__ = [
    "AssetVerifier",
    "verify_asset",
    "Asset",
    "AssetFields",
    "DomainName",
    "OutPoint",
    "TxInput",
    "FieldRules",
    "VerificationStatus",
    "VerificationResult",
    "VerificationOptions",
    "StageResult",
    "VerificationStage",
    "AssetError",
    "CryptoUtils",
    "derive_asset_id",
    "format_sig_msg",
    "AssetRegistry",
]
