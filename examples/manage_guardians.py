#!/usr/bin/env python3
"""
Example: adding the configured guardians, then removing and re-adding one

Usage: manage_guardians.py [add|remove INDEX|list]
"""

import logging
import sys

from guardian_wallet.session import Session


def show(guardians):
    print("Guardians:")
    for index, address in enumerate(guardians):
        print(f"   [{index}] {address}")


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    command = sys.argv[1] if len(sys.argv) > 1 else "add"

    session = Session.from_config()
    manager = session.guardians()

    if command == "list":
        show(manager.guardians())
    elif command == "add":
        print("adding guardians...")
        show(manager.ensure(*(actor.address for actor in session.registry.guardians())))
    elif command == "remove":
        index = int(sys.argv[2]) if len(sys.argv) > 2 else 0
        print(f"removing guardian {index}...")
        show(manager.remove(index))
    else:
        print(__doc__)
        sys.exit(2)


if __name__ == "__main__":
    main()
