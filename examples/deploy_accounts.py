#!/usr/bin/env python3
"""
Example: deploying the owner wallet and two funded guardian accounts

Reads RPC_URL, FACTORY_ADDRESS and PRIVATE_KEY from .env (or the
environment) and appends the created addresses and keys to .env.
"""

import logging

from guardian_wallet.actors import FUNDER
from guardian_wallet.rules import to_wei, from_wei
from guardian_wallet.session import Session


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    print("=== Deploying Accounts ===")
    print()

    session = Session.from_config()
    funder = session.registry.get(FUNDER)
    deployer = session.deployer()

    print(f"💳 Funder {funder.address}: {from_wei(session.provider.get_balance(funder.address))} ETH")

    if not session.settings.wallet_address:
        _, account = deployer.create_wallet(funder, amount=to_wei(0.001))
        print(f"✅ Wallet deployed on {account.address}")
    else:
        print(f"ℹ️  Wallet already configured: {session.settings.wallet_address}")

    for index in (1, 2):
        if index in session.settings.guardians():
            print(f"ℹ️  Guardian {index} already configured")
            continue
        guardian = deployer.provision_guardian(funder, index)
        print(f"✅ Guardian {index} deployed and funded on {guardian.address}")

    print()
    print("Addresses and keys appended to .env")


if __name__ == "__main__":
    main()
