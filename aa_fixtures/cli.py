"""
Command line entry point.

Usage:
    aa-fixtures deploy
    aa-fixtures paymaster --owner-key 0x... --signer-key 0x...

``deploy`` puts the account-abstraction singletons on a running node (e.g.
``npx hardhat node``) and writes the deployment directory; ``paymaster``
deploys and funds a verifying paymaster against that directory.
"""

import argparse
import asyncio
import sys
import traceback
from pathlib import Path

from eth_account import Account

from .config import SIGNER_PRIVATE_KEY, USER_PRIVATE_KEY, HarnessConfig
from .context import HarnessContext
from .deploy import deploy_singletons, verify_singletons
from .paymaster import SponsorshipBootstrap
from .report import DeploymentReport


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aa-fixtures", description="ERC-4337 test fixture harness")
    parser.add_argument("--rpc-url", help="JSON-RPC endpoint (default: AA_FIXTURES_RPC_URL or local Hardhat)")
    parser.add_argument("--deployments", type=Path, help="Deployment directory JSON file")
    parser.add_argument("--solc-version", help="solc version used for compilation")
    parser.add_argument("--install-solc", action="store_true", help="Install the solc version if it is missing")

    commands = parser.add_subparsers(dest="command", required=True)

    deploy = commands.add_parser("deploy", help="Deploy the singletons and write the deployment directory")
    deploy.add_argument("--reports", type=Path, help="Directory for the JSON/CSV deployment report")

    paymaster = commands.add_parser("paymaster", help="Deploy and fund a verifying paymaster")
    paymaster.add_argument("--owner-key", default=USER_PRIVATE_KEY, help="Private key of the paymaster owner")
    paymaster.add_argument("--signer-key", default=SIGNER_PRIVATE_KEY, help="Private key of the verifying signer")
    return parser


def config_from_args(args) -> HarnessConfig:
    config = HarnessConfig.from_env()
    if args.rpc_url:
        config.rpc_url = args.rpc_url
    if args.deployments:
        config.deployments_path = args.deployments
    if args.solc_version:
        config.solc_version = args.solc_version
    if args.install_solc:
        config.install_solc = True
    if getattr(args, "reports", None):
        config.reports_dir = args.reports
    return config


async def run_deploy(config: HarnessConfig) -> int:
    context = await HarnessContext.connect(config, missing_ok=True)
    report = DeploymentReport({"chainId": await context.w3.eth.chain_id, "rpcUrl": config.rpc_url})

    handles = await deploy_singletons(context, report=report)
    passed = await verify_singletons(context, report)
    report.print_summary()
    report.save(config.reports_dir)

    print("\n[DEPLOYMENT SUMMARY]")
    for name, handle in handles.items():
        print(f"  {name.value}: {handle.address}")
    return 0 if passed else 1


async def run_paymaster(config: HarnessConfig, owner_key: str, signer_key: str) -> int:
    context = await HarnessContext.connect(config)
    owner = Account.from_key(owner_key)
    signer = Account.from_key(signer_key)

    intermediary = await SponsorshipBootstrap(context).bootstrap(owner, signer)
    print("\n[PAYMASTER]")
    print(f"  Address: {intermediary.address}")
    print(f"  Owner: {intermediary.owner}")
    print(f"  Verifying signer: {intermediary.verifying_signer}")
    print(f"  State: {intermediary.state.value}")
    print(f"  Entry point deposit: {await intermediary.entry_point_deposit()} wei")
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    try:
        if args.command == "deploy":
            return asyncio.run(run_deploy(config))
        return asyncio.run(run_paymaster(config, args.owner_key, args.signer_key))
    except Exception as e:
        print(f"\n[ERROR] {args.command} failed: {e}")
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
