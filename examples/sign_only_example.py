#!/usr/bin/env python3
"""
Sign-only example for the Fireblocks signer transport.
"""
import os
import sys

from fireblocks_signer import ClientBuilder, FireblocksError, init


def main():
    """
    Submit a base64 serialized Solana transaction for co-signing and wait
    for the Fireblocks signature.

    Requires FIREBLOCKS_API_KEY, FIREBLOCKS_SECRET (or FIREBLOCKS_SECRET_PATH)
    and BASE64_TX. Set FIREBLOCKS_SANDBOX=1 to use the sandbox.
    """
    init()

    base64_tx = os.environ.get("BASE64_TX")
    if not base64_tx:
        print("ERROR: BASE64_TX environment variable is required")
        return 1

    asset_id = os.environ.get("FIREBLOCKS_ASSET", "SOL_TEST")
    vault_id = os.environ.get("FIREBLOCKS_VAULT", "0")

    try:
        with ClientBuilder.from_env().with_user_agent("fireblocks-signer-example").build() as client:
            print(f"Vault {vault_id} address: {client.address(vault_id, asset_id)}")

            created = client.sign_only(asset_id, vault_id, base64_tx)
            print(f"Submitted transaction {created}")

            response, signature = client.poll(
                created.id,
                timeout=90,
                interval=7,
                callback=lambda t: print(f"transaction status {t}"),
            )
    except FireblocksError as e:
        print(f"Error: {e}")
        return 1

    if signature is None:
        print(f"No signature: {response.status} ({response.sub_status})")
        return 1
    print(f"Signature: {signature}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
