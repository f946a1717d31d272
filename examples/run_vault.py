#!/usr/bin/env python3
"""
Example: guardian-approved withdrawal followed by a cancelled request

Usage: run_vault.py RECIPIENT [AMOUNT_ETH]
"""

import logging
import sys

from guardian_wallet.errors import GuardianWalletError
from guardian_wallet.rules import to_wei, from_wei
from guardian_wallet.session import Session


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)
    recipient = sys.argv[1]
    amount = to_wei(float(sys.argv[2]) if len(sys.argv) > 2 else 0.001)

    session = Session.from_config()
    vault = session.vault()

    try:
        vault.preflight()

        print("adding guardians...")
        guardians = session.guardians().ensure(*(g.address for g in session.registry.guardians()))
        print(f"Guardians: {list(guardians)}")

        print(f"recipient balance: {from_wei(session.provider.get_balance(recipient))} ETH")
        request = vault.run_withdrawal(amount, recipient)
        print(f"✅ Request {request.request_id} {request.state.value}")
        print(f"recipient balance: {from_wei(session.provider.get_balance(recipient))} ETH")

        print("creating another withdraw request...")
        second = vault.create_request(amount, recipient)
        print("cancel withdraw request...")
        second = vault.cancel(second.request_id)
        print(f"✅ Request {second.request_id} {second.state.value}")
    except GuardianWalletError as e:
        print(f"❌ FAILED: {e}")
        print("   Inspect on-chain state (web_interface/app.py) before re-running.")
        sys.exit(1)

    print("Success")


if __name__ == "__main__":
    main()
