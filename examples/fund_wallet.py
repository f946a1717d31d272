#!/usr/bin/env python3
"""
Example: topping up the wallet from the funding account
"""

import logging
import sys

from guardian_wallet.actors import FUNDER
from guardian_wallet.rules import to_wei, from_wei
from guardian_wallet.session import Session


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    amount = float(sys.argv[1]) if len(sys.argv) > 1 else 0.001

    session = Session.from_config()
    funder = session.registry.get(FUNDER)
    session.deployer().fund(funder, session.wallet_address, to_wei(amount))

    balance = session.provider.get_balance(session.wallet_address)
    print(f"balance : {from_wei(balance)} ETH")


if __name__ == "__main__":
    main()
