"""Asset verification pipeline.

Stages run in a fixed order and stop at the first failure:

1. field syntax
2. identifier commitment
3. field authenticity (signature or contract mode)
4. on-chain issuance, only when a chain anchor is supplied
5. entity link
"""
import logging
from dataclasses import asdict, is_dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .authenticity import verify_fields
from .chain import ChainAnchor
from .commitment import verify_commitment
from .errors import (
    AssetError,
    ChainVerificationFailed,
    EntityLinkFailed,
    VerificationStage,
)
from .entity import EntityLink
from .fields import validate_fields
from .types import (
    Asset,
    StageResult,
    VerificationOptions,
    VerificationResult,
    VerificationStatus,
)

logger = logging.getLogger(__name__)

StageCheck = Callable[[Asset], Optional[Dict[str, Any]]]


class AssetVerifier:
    """Runs the verification stages for asset records.

    The verifier holds no per-call state, so one instance can serve
    concurrent verifications.
    """

    def __init__(self, options: Optional[VerificationOptions] = None):
        self.options = options or VerificationOptions()

    def verify(
        self,
        asset: Asset,
        chain: Optional[ChainAnchor] = None,
        entity_link: Optional[EntityLink] = None,
    ) -> VerificationResult:
        """Verify an asset record.

        Args:
            asset: Record to verify
            chain: Chain anchor; without one the on-chain stage is skipped
            entity_link: Entity link verifier for the final stage

        Returns:
            VerificationResult; on rejection ``error`` holds the first
            failure, tagged with its stage
        """
        results: List[StageResult] = []

        for stage, check in self._stages(chain, entity_link):
            if check is None:
                results.append(StageResult(stage=stage, passed=True, skipped=True))
                continue
            try:
                details = check(asset) or {}
            except AssetError as err:
                err.stage = stage
                results.append(StageResult(stage=stage, passed=False, details={"error": err.message}))
                return VerificationResult(
                    status=VerificationStatus.REJECTED,
                    asset=asset,
                    stages=results,
                    error=err,
                )
            results.append(StageResult(stage=stage, passed=True, details=details))

        logger.debug(f"asset {asset.asset_id} passed verification")
        return VerificationResult(status=VerificationStatus.VERIFIED, asset=asset, stages=results)

    def _stages(
        self,
        chain: Optional[ChainAnchor],
        entity_link: Optional[EntityLink],
    ) -> List[Tuple[VerificationStage, Optional[StageCheck]]]:
        return [
            (VerificationStage.FIELDS, self._check_fields),
            (VerificationStage.COMMITMENT, verify_commitment),
            (VerificationStage.AUTHENTICITY, verify_fields),
            (VerificationStage.CHAIN, self._chain_check(chain)),
            (VerificationStage.ENTITY, self._entity_check(entity_link)),
        ]

    def _check_fields(self, asset: Asset) -> None:
        validate_fields(asset.fields, self.options.field_rules)

    def _chain_check(self, chain: Optional[ChainAnchor]) -> Optional[StageCheck]:
        if chain is not None:
            def check(asset: Asset) -> Dict[str, Any]:
                block = chain.verify_issuance(asset)
                return {"block": asdict(block)} if is_dataclass(block) else {}
            return check

        if self.options.require_chain:
            def missing(asset: Asset) -> None:
                raise ChainVerificationFailed("no chain anchor configured")
            return missing

        return None

    def _entity_check(self, entity_link: Optional[EntityLink]) -> Optional[StageCheck]:
        if not self.options.check_entity:
            return None

        def check(asset: Asset) -> Dict[str, Any]:
            if entity_link is None:
                raise EntityLinkFailed("no entity link verifier configured")
            entity_link.verify_link(asset.entity, asset.fields, asset.asset_id)
            return {"entity": asset.entity.to_dict()}

        return check


def verify_asset(
    asset: Asset,
    chain: Optional[ChainAnchor] = None,
    entity_link: Optional[EntityLink] = None,
    options: Optional[VerificationOptions] = None,
) -> VerificationResult:
    """Verify an asset and raise its stage error if it is rejected."""
    result = AssetVerifier(options).verify(asset, chain=chain, entity_link=entity_link)
    result.raise_for_error()
    return result
