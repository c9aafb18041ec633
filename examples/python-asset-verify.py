import os
import sys
import json

# Add python directory to path to import assetreg
sys.path.append(os.path.join(os.path.dirname(__file__), '../python'))

from assetreg import (
    Asset,
    AssetFields,
    AssetVerifier,
    CryptoUtils,
    DomainName,
    OutPoint,
    TxInput,
    VerificationOptions,
    derive_asset_id,
    format_sig_msg,
)
from assetreg.commitment import contract_hash

ISSUER_KEY = "11" * 32


def main():
    print("--- Testing Asset Verification (Python) ---")

    contract = {"issuer_pubkey": CryptoUtils.public_key_hex(ISSUER_KEY), "version": 0}
    prevout = OutPoint(txid="0a" * 32, vout=1)
    fields = AssetFields(name="Example Coin", entity=DomainName("example.com"), ticker="EXC", precision=8)

    asset_id = derive_asset_id(prevout, contract_hash(contract))
    print(f"Derived asset id: {asset_id}")

    message = format_sig_msg(asset_id, fields)
    print(f"Signed message: {message}")

    asset = Asset(
        asset_id=asset_id,
        contract=contract,
        issuance_txin=TxInput(txid="0b" * 32, vin=0),
        issuance_prevout=prevout,
        fields=fields,
        signature=CryptoUtils.sign_message(message, ISSUER_KEY),
    )

    # No chain backend and no network access here: skip those layers
    verifier = AssetVerifier(VerificationOptions(check_entity=False))
    result = verifier.verify(asset)

    print("\n[Asset Verification]")
    print(f"Status: {result.status.value}")
    print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
