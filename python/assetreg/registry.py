"""
File-backed registry of verified assets.

Each asset is stored as ``<asset_id>.json`` in the registry directory.
Only assets that pass verification are written, and an asset id can be
registered once. A single writing process is assumed.
"""
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Union

from .chain import ChainAnchor
from .entity import EntityLink
from .errors import AssetExists, MalformedInput, RegistryError, VerificationStage
from .types import Asset, VerificationOptions, VerificationResult, parse_hex32
from .verify import AssetVerifier

logger = logging.getLogger(__name__)


class AssetRegistry:
    """
    Registry of verified assets.

    Usage:
        registry = AssetRegistry.load("./db", entity_link=WellKnownEntityLink())
        registry.write(Asset.load("asset.json"))
        registry.get(asset_id)
    """

    def __init__(
        self,
        directory: Union[Path, str],
        chain: Optional[ChainAnchor] = None,
        entity_link: Optional[EntityLink] = None,
        options: Optional[VerificationOptions] = None,
    ):
        self.directory = Path(directory)
        self.chain = chain
        self.entity_link = entity_link
        self.verifier = AssetVerifier(options)
        self._assets: Dict[str, Asset] = {}
        self._lock = threading.Lock()

    @classmethod
    def load(cls, directory: Union[Path, str], **kwargs) -> "AssetRegistry":
        """Open a registry directory and read every stored asset."""
        registry = cls(directory, **kwargs)
        registry.directory.mkdir(parents=True, exist_ok=True)

        for path in sorted(registry.directory.glob("*.json")):
            try:
                asset = Asset.load(path)
            except MalformedInput as e:
                raise RegistryError(f"corrupt registry entry {path}: {e}") from e
            registry._assets[asset.asset_id] = asset

        logger.info(f"Loaded {len(registry._assets)} assets from {registry.directory}")
        return registry

    def __len__(self) -> int:
        return len(self._assets)

    def __repr__(self) -> str:
        return f"AssetRegistry({str(self.directory)!r}, assets={len(self._assets)})"

    def list(self) -> Dict[str, Asset]:
        with self._lock:
            return dict(self._assets)

    def get(self, asset_id: str) -> Optional[Asset]:
        asset_id = parse_hex32(asset_id, "asset id", VerificationStage.LOAD)
        with self._lock:
            return self._assets.get(asset_id)

    def write(self, asset: Asset) -> VerificationResult:
        """Verify an asset and store it.

        Raises:
            AssetError: the stage error if verification rejects the asset
            AssetExists: if the asset id is already registered
        """
        if asset.asset_id in self._assets:
            raise AssetExists(f"asset {asset.asset_id} already registered")

        result = self.verifier.verify(asset, chain=self.chain, entity_link=self.entity_link)
        if not result.ok:
            logger.warning(f"rejected asset {asset.asset_id}: {result.error}")
            result.raise_for_error()

        with self._lock:
            if asset.asset_id in self._assets:
                raise AssetExists(f"asset {asset.asset_id} already registered")
            self._write_file(asset)
            self._assets[asset.asset_id] = asset

        logger.info(f"registered asset {asset.asset_id} ({asset.name})")
        return result

    def _write_file(self, asset: Asset) -> None:
        target = self.directory / f"{asset.asset_id}.json"
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(asset.to_dict(), f, indent=2)
            os.replace(tmp_path, target)
        except OSError:
            Path(tmp_path).unlink(missing_ok=True)
            raise
