"""
Harness configuration.

Module-level constants hold the local Hardhat defaults and can be overridden
through environment variables. ``HarnessConfig`` bundles them together with
the amounts and limits used by the deployers and the paymaster bootstrap.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from web3 import Web3

BASE_DIR = Path(os.getenv("AA_FIXTURES_HOME", Path.cwd()))

RPC_URL = os.getenv("AA_FIXTURES_RPC_URL", "http://127.0.0.1:8545")
DEPLOYMENTS_PATH = Path(os.getenv("AA_FIXTURES_DEPLOYMENTS", BASE_DIR / "data" / "deployments.json"))
REPORTS_DIR = Path(os.getenv("AA_FIXTURES_REPORTS", BASE_DIR / "data" / "reports"))

# Standard Hardhat test accounts (FOR TESTING ONLY)
DEPLOYER_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
USER_PRIVATE_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
SIGNER_PRIVATE_KEY = "0x5de4111afa1a4b94908f83103eb1f1706367c2e68ca870fc3fb9a804cdab365a"

SOLC_VERSION = os.getenv("AA_FIXTURES_SOLC_VERSION", "0.8.19")


@dataclass
class HarnessConfig:
    """
    Settings shared by every harness component.

    Defaults:
        deploy_gas_limit: 6,000,000 gas for contract-creation transactions
        call_gas_limit: 1,000,000 gas for state-mutating contract calls
        receipt_timeout: 120 seconds per confirmation wait
        paymaster_stake: 2 ether locked by the paymaster owner
        paymaster_unlock_delay: 10 seconds stake unlock delay
        signer_deposit: 1 ether credited to the verifying signer
        entry_point_deposit: 10 ether held by the entry point for the paymaster
    """

    rpc_url: str = RPC_URL
    deployments_path: Path = DEPLOYMENTS_PATH
    reports_dir: Path = REPORTS_DIR
    deployer_private_key: str = DEPLOYER_PRIVATE_KEY

    solc_version: str = SOLC_VERSION
    install_solc: bool = False
    optimize: bool = False

    deploy_gas_limit: int = 6_000_000
    call_gas_limit: int = 1_000_000
    gas_price: Optional[int] = None
    receipt_timeout: float = 120

    paymaster_stake: int = field(default_factory=lambda: Web3.to_wei(2, "ether"))
    paymaster_unlock_delay: int = 10
    signer_deposit: int = field(default_factory=lambda: Web3.to_wei(1, "ether"))
    entry_point_deposit: int = field(default_factory=lambda: Web3.to_wei(10, "ether"))

    @classmethod
    def from_env(cls, environ=None) -> "HarnessConfig":
        """Build a config from ``AA_FIXTURES_*`` variables, falling back to the defaults."""
        env = os.environ if environ is None else environ
        config = cls()

        if "AA_FIXTURES_RPC_URL" in env:
            config.rpc_url = env["AA_FIXTURES_RPC_URL"]
        if "AA_FIXTURES_DEPLOYMENTS" in env:
            config.deployments_path = Path(env["AA_FIXTURES_DEPLOYMENTS"])
        if "AA_FIXTURES_REPORTS" in env:
            config.reports_dir = Path(env["AA_FIXTURES_REPORTS"])
        if "AA_FIXTURES_DEPLOYER_KEY" in env:
            config.deployer_private_key = env["AA_FIXTURES_DEPLOYER_KEY"]
        if "AA_FIXTURES_SOLC_VERSION" in env:
            config.solc_version = env["AA_FIXTURES_SOLC_VERSION"]
        if "AA_FIXTURES_INSTALL_SOLC" in env:
            config.install_solc = env["AA_FIXTURES_INSTALL_SOLC"].lower() in ("1", "true", "yes")
        if "AA_FIXTURES_DEPLOY_GAS" in env:
            config.deploy_gas_limit = int(env["AA_FIXTURES_DEPLOY_GAS"])
        if "AA_FIXTURES_RECEIPT_TIMEOUT" in env:
            config.receipt_timeout = float(env["AA_FIXTURES_RECEIPT_TIMEOUT"])

        return config
