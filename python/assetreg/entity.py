"""Linking assets to real-world entities.

A domain owner vouches for an asset by serving a proof file at
``https://<domain>/.well-known/liquid-asset-proof-<asset_id>`` whose body is
the exact authorization sentence from ``expected_domain_proof``.
"""
import logging
import re
from typing import Optional, Protocol

import requests

from .errors import EntityLinkFailed
from .types import AssetEntity, AssetFields, DomainName

logger = logging.getLogger(__name__)

RE_DOMAIN = re.compile(
    r"(?=.{1,253}$)([a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z][a-z0-9-]{0,61}[a-z0-9]",
    re.IGNORECASE,
)


class EntityLink(Protocol):
    def verify_link(self, entity: AssetEntity, fields: AssetFields, asset_id: str) -> None:
        """Confirm the entity vouches for the asset, raising EntityLinkFailed if not."""


def domain_proof_url(domain: str, asset_id: str) -> str:
    return f"https://{domain}/.well-known/liquid-asset-proof-{asset_id}"


def expected_domain_proof(domain: str, asset_id: str) -> str:
    return f"Authorize linking the domain name {domain} to the Liquid asset {asset_id}"


class WellKnownEntityLink:
    """
    Entity link backed by HTTP proof files.

    Args:
        session: Optional requests session
        timeout: Request timeout in seconds
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 10):
        self.session = session or requests.Session()
        self.timeout = timeout

    def verify_link(self, entity: AssetEntity, fields: AssetFields, asset_id: str) -> None:
        if isinstance(entity, DomainName):
            self.verify_domain_link(entity.domain, asset_id)
            return
        raise EntityLinkFailed(f"unsupported entity type: {type(entity).__name__}")

    def verify_domain_link(self, domain: str, asset_id: str) -> None:
        if not RE_DOMAIN.fullmatch(domain):
            raise EntityLinkFailed(f"invalid domain name: {domain!r}")

        url = domain_proof_url(domain, asset_id)
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise EntityLinkFailed(f"failed fetching {url}: {e}") from e

        if resp.text.rstrip() != expected_domain_proof(domain, asset_id):
            raise EntityLinkFailed(f"{domain} does not confirm the link to asset {asset_id}")

        logger.debug(f"verified domain link {domain} -> {asset_id}")
