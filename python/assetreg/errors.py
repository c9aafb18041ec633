"""Error taxonomy for asset verification.

Every failure raised while loading or verifying an asset record is an
``AssetError`` carrying the stage that produced it, so a rejected
submission can always be traced back to the check that refused it.
"""
from enum import Enum
from typing import Any, Dict, Optional


class VerificationStage(Enum):
    """Stages an asset record passes through, in pipeline order."""
    LOAD = "load"
    FIELDS = "fields"
    COMMITMENT = "commitment"
    AUTHENTICITY = "authenticity"
    CHAIN = "chain"
    ENTITY = "entity"


class AssetError(Exception):
    """Base class for all asset verification failures."""

    default_stage: Optional[VerificationStage] = None

    def __init__(self, message: str, stage: Optional[VerificationStage] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage or self.default_stage

    def __str__(self) -> str:
        if self.stage is None:
            return self.message
        return f"{self.stage.value}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "stage": self.stage.value if self.stage else None,
            "message": self.message,
        }


class MalformedInput(AssetError):
    """Parse, hex or base64 decoding failure."""
    default_stage = VerificationStage.LOAD


class MalformedKey(MalformedInput):
    default_stage = VerificationStage.AUTHENTICITY


class MalformedSignature(MalformedInput):
    default_stage = VerificationStage.AUTHENTICITY


class MissingRequiredField(AssetError):
    """A document lacks a key the current stage depends on."""


class InvalidName(AssetError):
    default_stage = VerificationStage.FIELDS


class InvalidTicker(AssetError):
    default_stage = VerificationStage.FIELDS


class PrecisionOutOfRange(AssetError):
    default_stage = VerificationStage.FIELDS


class CommitmentMismatch(AssetError):
    """The asset id does not commit to the declared prevout and contract."""
    default_stage = VerificationStage.COMMITMENT


class SignatureInvalid(AssetError):
    default_stage = VerificationStage.AUTHENTICITY


class FieldsMismatch(AssetError):
    """The record's fields differ from the ones embedded in its contract."""
    default_stage = VerificationStage.AUTHENTICITY


class ChainVerificationFailed(AssetError):
    default_stage = VerificationStage.CHAIN


class EntityLinkFailed(AssetError):
    default_stage = VerificationStage.ENTITY


class RegistryError(Exception):
    """Storage-level failure in the asset registry."""


class AssetExists(RegistryError):
    """An asset with the same id is already registered."""
