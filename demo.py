#!/usr/bin/env python3
"""
Complete demo of the guardian wallet protocols on the in-memory development network
"""

import logging

from guardian_wallet.actors import Actor, ActorRegistry, Role, FUNDER
from guardian_wallet.credentials import SigningCredential
from guardian_wallet.deployment import AccountDeployer
from guardian_wallet.errors import GuardianWalletError
from guardian_wallet.executor import StepExecutor
from guardian_wallet.guardians import GuardianManager
from guardian_wallet.recovery import RecoveryWorkflow
from guardian_wallet.rules import to_wei, from_wei
from guardian_wallet.vault import VaultWorkflow
from guardian_wallet.zksync_stack.devnet import DevNetwork


def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("🛡️  GUARDIAN WALLET - COMPLETE DEMO")
    print("=" * 60)
    print()

    # Step 1: Network and funding account
    print("🔧 STEP 1: Starting development network")
    print("-" * 40)

    network = DevNetwork()
    executor = StepExecutor(network, pipeline=network.pipeline())
    funder = Actor.externally_owned(FUNDER, Role.THIRD_PARTY, SigningCredential.generate())
    network.fund(funder.address, to_wei(1))
    factory = network.deploy_factory()

    print(f"✅ Chain id: {network.chain_id()}")
    print(f"✅ Funder: {funder.address} ({from_wei(network.get_balance(funder.address))} ETH)")
    print(f"✅ Factory: {factory}")
    print()

    # Step 2: Accounts
    print("🏗️  STEP 2: Deploying owner and guardian accounts")
    print("-" * 40)

    deployer = AccountDeployer(executor, factory)
    owner, account = deployer.create_wallet(funder, amount=to_wei(0.01))
    guardian_1 = deployer.provision_guardian(funder, 1)
    guardian_2 = deployer.provision_guardian(funder, 2)
    registry = ActorRegistry([funder, owner, guardian_1, guardian_2])

    print(f"✅ Wallet: {account.address}")
    print(f"✅ Guardian 1: {guardian_1.address}")
    print(f"✅ Guardian 2: {guardian_2.address}")
    print()

    # Step 3: Guardians
    print("👥 STEP 3: Registering guardians")
    print("-" * 40)

    guardians = GuardianManager(executor, registry, account.address)
    for address in guardians.ensure(guardian_1.address, guardian_2.address):
        print(f"✅ Guardian: {address}")
    print()

    # Step 4: Vault
    print("💰 STEP 4: Threshold-approved withdrawal")
    print("-" * 40)

    recipient = SigningCredential.generate().address
    vault = VaultWorkflow(executor, registry, account.address)
    before = network.get_balance(recipient)
    request = vault.run_withdrawal(to_wei(0.001), recipient)
    after = network.get_balance(recipient)

    print(f"✅ Request {request.request_id}: {request.state.value}")
    print(f"   Approved by: {', '.join(request.approvers)}")
    print(f"   Recipient balance: {from_wei(before)} -> {from_wei(after)} ETH")
    print()

    print("Second request, cancelled by the owner")
    second = vault.create_request(to_wei(0.001), recipient)
    second = vault.cancel(second.request_id)
    print(f"   Request {second.request_id}: {second.state.value}")

    try:
        vault.approve(second.request_id)
        print("   ❌ UNEXPECTED: cancelled request accepted an approval")
    except GuardianWalletError as e:
        print(f"   ✅ EXPECTED FAILURE: {e}")
    print()

    # Step 5: Recovery
    print("🔑 STEP 5: Social recovery of the signing key")
    print("-" * 40)

    recovery = RecoveryWorkflow(executor, registry, account.address)
    old_signer = owner.credential.address
    process, credential = recovery.run(guardian_1.name, guardian_2.name)

    print(f"✅ Recovery {process.state.value}")
    print(f"   Old signer: {old_signer}")
    print(f"   New signer: {credential.address}")
    print(f"   On-chain:   {recovery.account.signing_address()}")
    print()

    print("Owner acting with the recovered key")
    third = vault.create_request(to_wei(0.0005), recipient)
    print(f"✅ Request {third.request_id} created with the new key")
    print()

    # Step 6: Summary
    print("📈 STEP 6: Summary")
    print("-" * 40)
    print(f"   Wallet balance: {from_wei(network.get_balance(account.address))} ETH")
    print(f"   Blocks: {network.height}")
    for r in vault.requests():
        print(f"   Request {r.request_id}: {from_wei(r.amount)} ETH -> {r.state.value}")
    print()
    print("🎯 Demo completed successfully!")


if __name__ == "__main__":
    main()
