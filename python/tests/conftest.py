"""Shared pytest fixtures for assetreg tests."""

import json

import pytest
import requests

from assetreg import Asset, AssetFields, CryptoUtils, DomainName, OutPoint, TxInput
from assetreg.authenticity import format_sig_msg
from assetreg.commitment import contract_hash, derive_asset_id


ISSUER_KEY = "11" * 32
OTHER_KEY = "22" * 32

PREVOUT = OutPoint(
    txid="0a93069bba360df60d77ecfff99304a9de123fecb8217348bb9d35f4a96d2fca",
    vout=1,
)
TXIN = TxInput(
    txid="3f5a6e43c0a4e6b2bb1d1bd1e97e3de1ad4f3c2a1b0e9d8c7b6a594837261504",
    vin=0,
)


# ---------------------------------------------------------------------------
# Published example record, used for its fields and message layout
# ---------------------------------------------------------------------------

LIVE_ASSET_ID = "5a273edc116adeacc13a7e8c4e987d31385db05c411c465df91bac4cf3aa0504"
LIVE_ISSUER_PUBKEY = "026be637f97bc191c27522577bd6fe284b54404321652fcc4eb62aa0f4cfd6d172"
LIVE_SIGNATURE = "ICm0o3st9zHdE3xcHgIkkDAC+KiRQwH/YzThdA3UxOe2dzcM/IQ0DGB2JhGsh66+0i3vXUlBjQPFP+latBMU6Ig="
LIVE_FIELDS = AssetFields(name="Foo Coin", entity=DomainName("foo.com"), ticker="FOO", precision=8)


# ---------------------------------------------------------------------------
# Stub collaborators
# ---------------------------------------------------------------------------


class StubChainAnchor:
    """Chain anchor that records calls and optionally fails."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def verify_issuance(self, asset):
        self.calls.append(asset)
        if self.error is not None:
            raise self.error


class StubEntityLink:
    """Entity link that records calls and optionally fails."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def verify_link(self, entity, fields, asset_id):
        self.calls.append((entity, fields, asset_id))
        if self.error is not None:
            raise self.error


class FakeSession:
    """Stands in for requests.Session, serving canned responses by URL."""

    def __init__(self, responses=None, error=None):
        self.responses = responses or {}
        self.error = error
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        if self.error is not None:
            raise self.error
        status, body = self.responses.get(url, (404, "not found"))
        return make_response(url, status, body)


def make_response(url, status, body):
    resp = requests.Response()
    resp.url = url
    resp.status_code = status
    resp.reason = "OK" if status < 400 else "Error"
    if not isinstance(body, (str, bytes)):
        body = json.dumps(body)
    resp._content = body.encode() if isinstance(body, str) else body
    resp.encoding = "utf-8"
    return resp


# ---------------------------------------------------------------------------
# Asset fixtures
# ---------------------------------------------------------------------------


def build_asset(fields=None, contract=None, prevout=PREVOUT, txin=TXIN, key=ISSUER_KEY, signed=True):
    """Build an asset whose id is derived from ``prevout`` and ``contract``."""
    fields = fields or AssetFields(name="Foo Coin", entity=DomainName("foo.com"), ticker="FOO", precision=8)
    if contract is None:
        contract = {"issuer_pubkey": CryptoUtils.public_key_hex(key), "version": 0}
    asset_id = derive_asset_id(prevout, contract_hash(contract))
    signature = CryptoUtils.sign_message(format_sig_msg(asset_id, fields), key) if signed else None
    return Asset(
        asset_id=asset_id,
        contract=contract,
        issuance_txin=txin,
        issuance_prevout=prevout,
        fields=fields,
        signature=signature,
    )


def embedded_contract(fields, key=ISSUER_KEY):
    """A contract carrying the asset fields, for unsigned (contract mode) assets."""
    contract = {"issuer_pubkey": CryptoUtils.public_key_hex(key), "version": 0}
    contract.update(fields.to_dict())
    contract = {k: v for k, v in contract.items() if v is not None}
    return contract


@pytest.fixture()
def signed_asset():
    """An asset in signature mode, valid through every offline stage."""
    return build_asset()


@pytest.fixture()
def contract_asset():
    """An unsigned asset whose fields are embedded in its contract."""
    fields = AssetFields(name="Bar Token", entity=DomainName("bar.example.org"), ticker="BAR", precision=2)
    return build_asset(fields=fields, contract=embedded_contract(fields), signed=False)


@pytest.fixture()
def chain_ok():
    return StubChainAnchor()


@pytest.fixture()
def entity_ok():
    return StubEntityLink()
