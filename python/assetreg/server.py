"""
HTTP API for the asset registry.

Endpoints:
    GET  /        - All registered assets keyed by asset id
    GET  /<id>    - A single asset
    POST /        - Verify and register an asset (JSON body)
    GET  /health  - Liveness probe
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from flask import Blueprint, Flask, current_app, jsonify, request

from .chain import EsploraChainQuery, IssuanceChainAnchor
from .entity import WellKnownEntityLink
from .errors import AssetError, AssetExists, MalformedInput
from .registry import AssetRegistry
from .types import Asset, VerificationOptions

logger = logging.getLogger(__name__)

api_bp = Blueprint("assetreg_api", __name__)


@dataclass
class APIError(Exception):
    """Structured error type that carries an HTTP status code."""

    status: int
    message: str
    extra: Optional[Dict[str, Any]] = None

    def to_response(self):
        payload = {"status": "ERROR", "message": self.message}
        if self.extra:
            payload.update(self.extra)
        return jsonify(payload), self.status


def _registry() -> AssetRegistry:
    return current_app.extensions["asset_registry"]


@api_bp.get("/")
def list_assets():
    assets = _registry().list()
    return jsonify({asset_id: asset.to_dict() for asset_id, asset in assets.items()}), 200


@api_bp.get("/<asset_id>")
def get_asset(asset_id: str):
    try:
        asset = _registry().get(asset_id)
    except MalformedInput as e:
        raise APIError(400, e.message)
    if asset is None:
        raise APIError(404, "asset not found")
    return jsonify(asset.to_dict()), 200


@api_bp.post("/")
def register_asset():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise APIError(400, "JSON body required")

    logger.debug(f"write asset: {data}")
    try:
        asset = Asset.from_dict(data)
        _registry().write(asset)
    except MalformedInput as e:
        raise APIError(400, str(e), e.to_dict())
    except AssetExists as e:
        raise APIError(409, str(e))
    except AssetError as e:
        raise APIError(422, str(e), e.to_dict())

    return jsonify(asset.to_dict()), 201


def _build_registry(app: Flask) -> AssetRegistry:
    chain = None
    if app.config.get("ASSETREG_ESPLORA_URL"):
        chain = IssuanceChainAnchor(EsploraChainQuery(app.config["ASSETREG_ESPLORA_URL"]))

    options = VerificationOptions(
        require_chain=bool(app.config.get("ASSETREG_REQUIRE_CHAIN")),
        check_entity=bool(app.config.get("ASSETREG_CHECK_ENTITY")),
    )
    return AssetRegistry.load(
        app.config["ASSETREG_DB_PATH"],
        chain=chain,
        entity_link=WellKnownEntityLink(),
        options=options,
    )


def create_app(config: Optional[Dict[str, Any]] = None, registry: Optional[AssetRegistry] = None) -> Flask:
    """Create and configure the Flask application."""

    app = Flask(__name__)

    app.config.setdefault("ASSETREG_DB_PATH", os.environ.get("ASSETREG_DB_PATH", "./db"))
    app.config.setdefault("ASSETREG_ESPLORA_URL", os.environ.get("ASSETREG_ESPLORA_URL"))
    app.config.setdefault("ASSETREG_REQUIRE_CHAIN", os.environ.get("ASSETREG_REQUIRE_CHAIN", "") == "1")
    app.config.setdefault("ASSETREG_CHECK_ENTITY", os.environ.get("ASSETREG_CHECK_ENTITY", "1") == "1")

    if config:
        app.config.update(config)

    if registry is None:
        registry = _build_registry(app)
    app.extensions["asset_registry"] = registry

    logger.info(f"Starting asset registry API with registry: {registry!r}")

    app.register_blueprint(api_bp)

    @app.get("/health")
    def _health():
        return {"status": "ok"}, 200

    @app.errorhandler(APIError)
    def _handle_api_error(err: APIError):
        return err.to_response()

    return app


__all__ = ["APIError", "create_app"]
