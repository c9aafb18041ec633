"""Tests for assetreg CLI."""

import json

import pytest

from assetreg import Asset
from assetreg.cli import create_command, list_command, message_command, verify_command
from assetreg.registry import AssetRegistry

from conftest import ISSUER_KEY, PREVOUT, TXIN, StubEntityLink


class _Args:
    """Minimal args namespace for testing CLI functions."""

    def __init__(self, **kwargs):
        for k, v in kwargs.items():
            setattr(self, k, v)


def _create_args(tmp_path, **overrides):
    key_path = tmp_path / "issuer.key"
    key_path.write_text(ISSUER_KEY + "\n")
    args = dict(
        contract='{"issuer_pubkey":"' + "02" + "ab" * 32 + '","version":0}',
        prevout=PREVOUT,
        txin=TXIN,
        name="Foo Coin",
        ticker="FOO",
        precision=8,
        domain="foo.com",
        key=str(key_path),
        output=str(tmp_path / "asset.json"),
    )
    args.update(overrides)
    return _Args(**args)


def _verify_args(path, **overrides):
    args = dict(file=str(path), esplora=None, require_chain=False, skip_entity=True, json=True)
    args.update(overrides)
    return _Args(**args)


class TestCreateCommand:
    def test_creates_signed_record(self, tmp_path, capsys):
        from assetreg.crypto import CryptoUtils

        pubkey = CryptoUtils.public_key_hex(ISSUER_KEY)
        create_command(_create_args(tmp_path, contract=json.dumps({"issuer_pubkey": pubkey})))

        asset = Asset.load(tmp_path / "asset.json")
        assert asset.signature is not None
        assert asset.issuance_prevout == PREVOUT
        assert "Asset id" in capsys.readouterr().out

    def test_contract_from_file(self, tmp_path):
        contract_path = tmp_path / "contract.json"
        contract_path.write_text('{"issuer_pubkey": "02' + "ab" * 32 + '"}')
        create_command(_create_args(tmp_path, contract=str(contract_path)))
        assert Asset.load(tmp_path / "asset.json").contract["issuer_pubkey"].startswith("02")

    def test_prints_when_no_output(self, tmp_path, capsys):
        create_command(_create_args(tmp_path, output=None, key=None))
        data = json.loads(capsys.readouterr().out)
        assert "signature" not in data
        assert data["ticker"] == "FOO"

    def test_invalid_contract(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            create_command(_create_args(tmp_path, contract="{broken"))
        assert exc_info.value.code == 1

    @pytest.mark.parametrize("overrides", [
        {"precision": -1},
        {"precision": 9},
        {"name": "abc"},
        {"ticker": "foo"},
    ])
    def test_invalid_fields_not_written(self, tmp_path, capsys, overrides):
        with pytest.raises(SystemExit) as exc_info:
            create_command(_create_args(tmp_path, **overrides))
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err
        assert not (tmp_path / "asset.json").exists()

    def test_missing_contract_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            create_command(_create_args(tmp_path, contract=str(tmp_path / "missing.json")))
        assert exc_info.value.code == 1
        assert "cannot read contract" in capsys.readouterr().err

    def test_contract_not_an_object(self, tmp_path, capsys):
        contract_path = tmp_path / "contract.json"
        contract_path.write_text("[1, 2]")
        with pytest.raises(SystemExit) as exc_info:
            create_command(_create_args(tmp_path, contract=str(contract_path)))
        assert exc_info.value.code == 1

    def test_missing_key_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            create_command(_create_args(tmp_path, key=str(tmp_path / "missing.key")))
        assert exc_info.value.code == 1
        assert "cannot read key file" in capsys.readouterr().err

    def test_bad_key_file(self, tmp_path, capsys):
        key_path = tmp_path / "bad.key"
        key_path.write_text("not hex\n")
        with pytest.raises(SystemExit) as exc_info:
            create_command(_create_args(tmp_path, key=str(key_path)))
        assert exc_info.value.code == 1
        assert "invalid private key" in capsys.readouterr().err
        assert not (tmp_path / "asset.json").exists()


class TestVerifyCommand:
    def test_verify_created_record(self, tmp_path, capsys):
        from assetreg.crypto import CryptoUtils

        pubkey = CryptoUtils.public_key_hex(ISSUER_KEY)
        create_command(_create_args(tmp_path, contract=json.dumps({"issuer_pubkey": pubkey})))
        capsys.readouterr()

        with pytest.raises(SystemExit) as exc_info:
            verify_command(_verify_args(tmp_path / "asset.json"))
        assert exc_info.value.code == 0

        report = json.loads(capsys.readouterr().out)
        assert report["status"] == "verified"
        assert [s["stage"] for s in report["stages"]][:3] == ["fields", "commitment", "authenticity"]

    def test_verify_wrong_key(self, tmp_path, capsys):
        # Contract names a different issuer than the key used for signing.
        create_command(_create_args(tmp_path))
        capsys.readouterr()

        with pytest.raises(SystemExit) as exc_info:
            verify_command(_verify_args(tmp_path / "asset.json", json=False))
        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "REJECTED" in out
        assert "authenticity" in out

    def test_missing_file(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            verify_command(_verify_args(tmp_path / "nope.json"))
        assert exc_info.value.code == 1


class TestMessageCommand:
    def test_prints_message(self, tmp_path, capsys):
        create_command(_create_args(tmp_path))
        capsys.readouterr()
        message_command(_Args(file=str(tmp_path / "asset.json")))
        out = capsys.readouterr().out
        assert out.startswith('["elements-asset-assoc",0,"')


class TestListCommand:
    def test_lists_assets(self, tmp_path, capsys, signed_asset):
        AssetRegistry.load(tmp_path, entity_link=StubEntityLink()).write(signed_asset)
        list_command(_Args(db=str(tmp_path), json=False))
        out = capsys.readouterr().out
        assert signed_asset.asset_id in out
        assert "Foo Coin" in out
