"""Authenticity of asset fields.

Fields are authentic in exactly one of two ways, chosen by whether the
record carries a signature:

* signature mode: the issuer key in ``contract.issuer_pubkey`` signed the
  fields (see ``format_sig_msg`` for the signed bytes)
* contract mode: the fields are embedded in the committed contract itself
  and must match it exactly
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Union

from .crypto import CryptoUtils
from .errors import FieldsMismatch, MalformedInput
from .types import Asset, AssetFields

logger = logging.getLogger(__name__)

SIG_MSG_TAG = "elements-asset-assoc"
SIG_MSG_VERSION = 0


@dataclass(frozen=True)
class SignatureMode:
    signature: str


@dataclass(frozen=True)
class ContractMode:
    contract: Dict[str, Any]


VerificationMode = Union[SignatureMode, ContractMode]


def verification_mode(asset: Asset) -> VerificationMode:
    if asset.signature is not None:
        return SignatureMode(asset.signature)
    return ContractMode(asset.contract)


def format_sig_msg(asset_id: str, fields: AssetFields) -> str:
    """Build the exact message an issuer signs to associate fields with an asset."""
    return CryptoUtils.compact_json([SIG_MSG_TAG, SIG_MSG_VERSION, asset_id, fields.to_dict()])


def verify_fields_sig(pubkey: str, signature: str, asset_id: str, fields: AssetFields) -> None:
    public_key = CryptoUtils.decode_pubkey(pubkey)
    raw_signature = CryptoUtils.decode_signature(signature)
    msg = format_sig_msg(asset_id, fields)

    CryptoUtils.verify_message(public_key, raw_signature, msg)

    logger.debug(f"verified asset signature, issuer pubkey {pubkey} signed fields {fields}")


def fields_from_contract(contract: Dict[str, Any]) -> AssetFields:
    try:
        return AssetFields.from_dict(contract)
    except MalformedInput as e:
        raise FieldsMismatch(f"contract does not embed asset fields: {e.message}") from e


def verify_fields(asset: Asset) -> Dict[str, Any]:
    """Verify the record's fields in the mode selected by its signature.

    Raises:
        MissingRequiredField: signature mode without ``contract.issuer_pubkey``
        MalformedKey, MalformedSignature: undecodable key or signature
        SignatureInvalid: the signature does not cover these fields
        FieldsMismatch: contract mode and the fields differ from the contract
    """
    mode = verification_mode(asset)

    if isinstance(mode, SignatureMode):
        verify_fields_sig(asset.issuer_pubkey(), mode.signature, asset.asset_id, asset.fields)
        return {"mode": "signature"}

    if asset.fields != fields_from_contract(mode.contract):
        raise FieldsMismatch("fields mismatch commitment")
    return {"mode": "contract"}
