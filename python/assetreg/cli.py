"""Command-line interface for assetreg."""
import argparse
import json
import logging
import sys
from pathlib import Path

from .authenticity import format_sig_msg
from .chain import EsploraChainQuery, IssuanceChainAnchor
from .commitment import contract_hash, derive_asset_id
from .crypto import CryptoUtils
from .entity import WellKnownEntityLink
from .errors import AssetError, RegistryError
from .fields import validate_fields
from .registry import AssetRegistry
from .types import (
    Asset,
    AssetFields,
    DomainName,
    OutPoint,
    TxInput,
    VerificationOptions,
)
from .verify import AssetVerifier


def _load_asset(path_arg: str) -> Asset:
    path = Path(path_arg)
    if not path.exists():
        print(f"Error: File not found: {path_arg}", file=sys.stderr)
        sys.exit(1)
    try:
        return Asset.load(path)
    except AssetError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _parse_ref(value: str, index_key: str) -> dict:
    txid, sep, index = value.rpartition(":")
    if not sep or not index.isdigit():
        raise argparse.ArgumentTypeError(f"expected TXID:INDEX, got {value!r}")
    return {"txid": txid, index_key: int(index)}


def _outpoint_arg(value: str) -> OutPoint:
    try:
        return OutPoint.from_dict(_parse_ref(value, "vout"))
    except AssetError as e:
        raise argparse.ArgumentTypeError(e.message)


def _txin_arg(value: str) -> TxInput:
    try:
        return TxInput.from_dict(_parse_ref(value, "vin"))
    except AssetError as e:
        raise argparse.ArgumentTypeError(e.message)


def verify_command(args):
    """Verify asset command."""
    asset = _load_asset(args.file)

    chain = None
    if args.esplora:
        chain = IssuanceChainAnchor(EsploraChainQuery(args.esplora))

    options = VerificationOptions(
        require_chain=args.require_chain,
        check_entity=not args.skip_entity,
    )
    result = AssetVerifier(options).verify(asset, chain=chain, entity_link=WellKnownEntityLink())

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(f"\n{'='*60}")
        print("  Asset Verification Report")
        print(f"{'='*60}\n")
        print(f"Asset: {asset.asset_id}")
        print(f"Name: {asset.name}")
        print(f"Status: {result.status.value.upper()}")

        print("\nStages:")
        for stage in result.stages:
            if stage.skipped:
                icon, note = "-", " (skipped)"
            else:
                icon, note = ("✓", "") if stage.passed else ("✗", "")
            print(f"  {icon} {stage.stage.value}{note}")

        if result.error:
            print(f"\nError: {result.error}")

        print(f"\n{'='*60}\n")

    sys.exit(0 if result.ok else 1)


def create_command(args):
    """Build an asset record from issuance data and issuer fields."""
    contract_arg = args.contract
    try:
        if not contract_arg.lstrip().startswith("{"):
            contract_arg = Path(contract_arg).read_text()
        contract = json.loads(contract_arg)
    except OSError as e:
        print(f"Error: cannot read contract: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: invalid contract JSON: {e}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(contract, dict):
        print("Error: contract must be a JSON object", file=sys.stderr)
        sys.exit(1)

    prevout = args.prevout
    txin = args.txin
    fields = AssetFields(
        name=args.name,
        entity=DomainName(args.domain),
        ticker=args.ticker,
        precision=args.precision,
    )

    try:
        validate_fields(fields)
        asset_id = derive_asset_id(prevout, contract_hash(contract))
    except AssetError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    signature = None
    if args.key:
        try:
            private_key = Path(args.key).read_text().strip()
            signature = CryptoUtils.sign_message(format_sig_msg(asset_id, fields), private_key)
        except OSError as e:
            print(f"Error: cannot read key file: {e}", file=sys.stderr)
            sys.exit(1)
        except AssetError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

    asset = Asset(
        asset_id=asset_id,
        contract=contract,
        issuance_txin=txin,
        issuance_prevout=prevout,
        fields=fields,
        signature=signature,
    )

    output = asset.dumps(indent=2)
    if args.output:
        Path(args.output).write_text(output)
        print(f"Asset record saved to: {Path(args.output).resolve()}")
        print(f"Asset id: {asset_id}")
    else:
        print(output)


def message_command(args):
    """Print the message an issuer signs for an asset."""
    asset = _load_asset(args.file)
    print(format_sig_msg(asset.asset_id, asset.fields))


def list_command(args):
    """List assets in a registry directory."""
    try:
        registry = AssetRegistry.load(args.db)
    except RegistryError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    assets = registry.list()
    if args.json:
        print(json.dumps({asset_id: asset.to_dict() for asset_id, asset in assets.items()}, indent=2))
        return

    for asset_id, asset in sorted(assets.items()):
        ticker = asset.fields.ticker or "-"
        print(f"{asset_id}  {ticker:<5}  {asset.name}")


def serve_command(args):
    """Run the registry HTTP API."""
    from .server import create_app

    app = create_app({
        "ASSETREG_DB_PATH": args.db,
        "ASSETREG_ESPLORA_URL": args.esplora,
        "ASSETREG_REQUIRE_CHAIN": args.require_chain,
        "ASSETREG_CHECK_ENTITY": not args.skip_entity,
    })
    app.run(host=args.host, port=args.port)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="assetreg",
        description="Verify and register issued assets"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Verify command
    verify_parser = subparsers.add_parser("verify", help="Verify an asset record")
    verify_parser.add_argument("file", help="Asset JSON file")
    verify_parser.add_argument("-e", "--esplora", help="Esplora API URL for on-chain verification")
    verify_parser.add_argument("--require-chain", action="store_true", help="Fail when no chain backend is given")
    verify_parser.add_argument("--skip-entity", action="store_true", help="Skip the entity link check")
    verify_parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    verify_parser.set_defaults(func=verify_command)

    # Create command
    create_parser = subparsers.add_parser("create", help="Build an asset record")
    create_parser.add_argument("--contract", required=True, help="Contract JSON or path to it")
    create_parser.add_argument("--prevout", required=True, type=_outpoint_arg, help="Issuance prevout as TXID:VOUT")
    create_parser.add_argument("--txin", required=True, type=_txin_arg, help="Issuance input as TXID:VIN")
    create_parser.add_argument("--name", required=True, help="Asset name (5-255 characters)")
    create_parser.add_argument("--ticker", help="Asset ticker (A-Z, 3-5 chars)")
    create_parser.add_argument("--precision", type=int, help="Asset decimal precision (up to 8)")
    create_parser.add_argument("--domain", required=True, help="Domain name to associate with the asset")
    create_parser.add_argument("-k", "--key", help="Path to the issuer private key (hex)")
    create_parser.add_argument("-o", "--output", help="Output file path")
    create_parser.set_defaults(func=create_command)

    # Message command
    message_parser = subparsers.add_parser("message", help="Print the message to sign for an asset")
    message_parser.add_argument("file", help="Asset JSON file")
    message_parser.set_defaults(func=message_command)

    # List command
    list_parser = subparsers.add_parser("list", help="List registered assets")
    list_parser.add_argument("db", help="Registry directory")
    list_parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    list_parser.set_defaults(func=list_command)

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the registry HTTP API")
    serve_parser.add_argument("db", help="Registry directory")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument("-e", "--esplora", help="Esplora API URL for on-chain verification")
    serve_parser.add_argument("--require-chain", action="store_true", help="Reject assets when no chain backend is given")
    serve_parser.add_argument("--skip-entity", action="store_true", help="Skip the entity link check")
    serve_parser.set_defaults(func=serve_command)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    args.func(args)


if __name__ == "__main__":
    main()
