"""Type definitions for assetreg."""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Pattern, Union

from .errors import (
    AssetError,
    MalformedInput,
    MissingRequiredField,
    VerificationStage,
)

_HEX32 = re.compile(r"^[0-9a-fA-F]{64}$")


def parse_hex32(value: Any, what: str, stage: VerificationStage) -> str:
    if not isinstance(value, str) or not _HEX32.match(value):
        raise MalformedInput(f"{what} must be a 32-byte hex string", stage)
    return value.lower()


def _parse_index(value: Any, what: str, stage: VerificationStage) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFFFFFFFF:
        raise MalformedInput(f"{what} must be an unsigned 32-bit integer", stage)
    return value


def _require(data: Dict[str, Any], key: str, stage: VerificationStage) -> Any:
    if key not in data:
        raise MalformedInput(f"missing {key}", stage)
    return data[key]


@dataclass(frozen=True)
class OutPoint:
    """Reference to a transaction output (the UTXO spent to issue an asset)."""
    txid: str
    vout: int

    @classmethod
    def from_dict(cls, data: Any, stage: VerificationStage = VerificationStage.LOAD) -> "OutPoint":
        if not isinstance(data, dict):
            raise MalformedInput("issuance_prevout must be an object", stage)
        return cls(
            txid=parse_hex32(_require(data, "txid", stage), "issuance_prevout.txid", stage),
            vout=_parse_index(_require(data, "vout", stage), "issuance_prevout.vout", stage),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"txid": self.txid, "vout": self.vout}


@dataclass(frozen=True)
class TxInput:
    """The transaction input that carries the issuance."""
    txid: str
    vin: int

    @classmethod
    def from_dict(cls, data: Any, stage: VerificationStage = VerificationStage.LOAD) -> "TxInput":
        if not isinstance(data, dict):
            raise MalformedInput("issuance_txin must be an object", stage)
        return cls(
            txid=parse_hex32(_require(data, "txid", stage), "issuance_txin.txid", stage),
            vin=_parse_index(_require(data, "vin", stage), "issuance_txin.vin", stage),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"txid": self.txid, "vin": self.vin}


@dataclass(frozen=True)
class DomainName:
    """Entity variant: a DNS domain vouching for the asset."""
    domain: str

    tag: ClassVar[str] = "domain"

    @property
    def value(self) -> str:
        return self.domain

    def to_dict(self) -> Dict[str, str]:
        return {self.tag: self.domain}


# Closed union of entity variants. New kinds of entity are added here.
AssetEntity = Union[DomainName]

_ENTITY_VARIANTS = {variant.tag: variant for variant in (DomainName,)}


def entity_from_dict(data: Any, stage: VerificationStage = VerificationStage.LOAD) -> AssetEntity:
    """Decode an externally tagged entity, e.g. ``{"domain": "foo.com"}``."""
    if not isinstance(data, dict) or len(data) != 1:
        raise MalformedInput("entity must be an object with exactly one key", stage)
    (tag, value), = data.items()
    variant = _ENTITY_VARIANTS.get(tag)
    if variant is None:
        raise MalformedInput(f"unknown entity type: {tag}", stage)
    if not isinstance(value, str):
        raise MalformedInput(f"entity {tag} must be a string", stage)
    return variant(value)


@dataclass(frozen=True)
class AssetFields:
    """Fields selected freely by the issuer.

    Serialized in the order name, ticker, precision, entity. That order is
    part of the signed message format and must not change.
    """
    name: str
    entity: AssetEntity
    ticker: Optional[str] = None
    precision: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any, stage: VerificationStage = VerificationStage.LOAD) -> "AssetFields":
        if not isinstance(data, dict):
            raise MalformedInput("asset fields must be an object", stage)

        name = _require(data, "name", stage)
        if not isinstance(name, str):
            raise MalformedInput("name must be a string", stage)

        ticker = data.get("ticker")
        if ticker is not None and not isinstance(ticker, str):
            raise MalformedInput("ticker must be a string", stage)

        precision = data.get("precision")
        if precision is not None and (
            isinstance(precision, bool) or not isinstance(precision, int) or not 0 <= precision <= 255
        ):
            raise MalformedInput("precision must be an integer between 0 and 255", stage)

        entity = entity_from_dict(_require(data, "entity", stage), stage)
        return cls(name=name, entity=entity, ticker=ticker, precision=precision)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "ticker": self.ticker,
            "precision": self.precision,
            "entity": self.entity.to_dict(),
        }


def _parse_contract(value: Any) -> Dict[str, Any]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError as e:
            raise MalformedInput(f"contract is not valid JSON: {e}") from e
    if not isinstance(value, dict):
        raise MalformedInput("contract must be a JSON object")
    return value


@dataclass(frozen=True)
class Asset:
    """An asset record as submitted to the registry."""
    asset_id: str
    contract: Dict[str, Any]
    issuance_txin: TxInput
    issuance_prevout: OutPoint
    fields: AssetFields
    signature: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Asset":
        """Build an asset from its JSON document form.

        The issuer fields (name, ticker, precision, entity) are read from the
        top level of the document. A string-encoded ``contract`` is parsed.
        """
        if not isinstance(data, dict):
            raise MalformedInput("asset document must be a JSON object")

        signature = data.get("signature")
        if signature is not None and not isinstance(signature, str):
            raise MalformedInput("signature must be a base64 string")

        load = VerificationStage.LOAD
        return cls(
            asset_id=parse_hex32(_require(data, "asset_id", load), "asset_id", load),
            contract=_parse_contract(_require(data, "contract", load)),
            issuance_txin=TxInput.from_dict(_require(data, "issuance_txin", load)),
            issuance_prevout=OutPoint.from_dict(_require(data, "issuance_prevout", load)),
            fields=AssetFields.from_dict(data),
            signature=signature,
        )

    @classmethod
    def loads(cls, raw: Union[str, bytes]) -> "Asset":
        """Deserialize an asset from a JSON string or byte buffer."""
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise MalformedInput(f"invalid asset JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Asset":
        return cls.loads(Path(path).read_bytes())

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "asset_id": self.asset_id,
            "contract": self.contract,
            "issuance_txin": self.issuance_txin.to_dict(),
            "issuance_prevout": self.issuance_prevout.to_dict(),
        }
        data.update(self.fields.to_dict())
        if self.signature is not None:
            data["signature"] = self.signature
        return data

    def dumps(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @property
    def id(self) -> str:
        return self.asset_id

    @property
    def name(self) -> str:
        return self.fields.name

    @property
    def entity(self) -> AssetEntity:
        return self.fields.entity

    def issuer_pubkey(self) -> str:
        pubkey = self.contract.get("issuer_pubkey")
        if not isinstance(pubkey, str):
            raise MissingRequiredField("missing contract.issuer_pubkey", VerificationStage.AUTHENTICITY)
        return pubkey


@dataclass(frozen=True)
class FieldRules:
    """Syntactic rules for issuer-chosen fields.

    The accepted name alphabet is not settled, so it is configurable. The
    default admits printable ASCII only.
    """
    name_pattern: Pattern[str] = re.compile(r"[\x20-\x7e]{5,255}")
    ticker_pattern: Pattern[str] = re.compile(r"[A-Z]{3,5}")
    max_precision: int = 8


class VerificationStatus(Enum):
    """Outcome of running the verification pipeline."""
    VERIFIED = "verified"
    REJECTED = "rejected"


@dataclass
class StageResult:
    """Result from a single pipeline stage."""
    stage: VerificationStage
    passed: bool
    skipped: bool = False
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class VerificationResult:
    """Complete verification result."""
    status: VerificationStatus
    asset: Asset
    stages: List[StageResult] = field(default_factory=list)
    error: Optional[AssetError] = None

    @property
    def ok(self) -> bool:
        return self.status is VerificationStatus.VERIFIED

    @property
    def failed_stage(self) -> Optional[VerificationStage]:
        return self.error.stage if self.error else None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset_id": self.asset.asset_id,
            "status": self.status.value,
            "stages": [
                {
                    "stage": result.stage.value,
                    "passed": result.passed,
                    "skipped": result.skipped,
                    "details": result.details,
                }
                for result in self.stages
            ],
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class VerificationOptions:
    """Options for verification."""
    field_rules: FieldRules = field(default_factory=FieldRules)
    require_chain: bool = False
    check_entity: bool = True
