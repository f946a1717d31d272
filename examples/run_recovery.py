#!/usr/bin/env python3
"""
Example: guardians recover the wallet's signing key

Guardian 1 initiates, guardian 2 supports and executes. The new signing
key is appended to .env as PENDING_WALLET_SIGNING_KEY before the first
step is sent, and as WALLET_SIGNING_KEY once the account uses it.
"""

import logging
import sys

from guardian_wallet.actors import guardian_name
from guardian_wallet.errors import GuardianWalletError
from guardian_wallet.session import Session


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    session = Session.from_config()
    recovery = session.recovery()

    try:
        print("adding guardians...")
        guardians = session.guardians().ensure(*(g.address for g in session.registry.guardians()))
        print(f"Guardians: {list(guardians)}")

        process, _ = session.recover(guardian_name(1), guardian_name(2))
    except GuardianWalletError as e:
        print(f"❌ FAILED: {e}")
        print("   Inspect on-chain state (web_interface/app.py) before re-running.")
        print("   The replacement key, if generated, is in .env as PENDING_WALLET_SIGNING_KEY.")
        sys.exit(1)

    print(f"recovery {process.state.value}")
    print(f"new signing address: {recovery.account.signing_address()}")


if __name__ == "__main__":
    main()
