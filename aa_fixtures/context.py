from dataclasses import dataclass
from typing import Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3

from .config import HarnessConfig
from .console import status
from .registry import ContractRegistry
from .transactions import TransactionSender


@dataclass
class HarnessContext:
    """
    Network handle, deployment directory and transaction sender shared by the
    harness components. Create it once with ``connect`` before any scenario
    runs; nothing needs tearing down.
    """

    w3: AsyncWeb3
    config: HarnessConfig
    registry: ContractRegistry
    sender: TransactionSender
    default_signer: LocalAccount

    @classmethod
    async def connect(
        cls,
        config: Optional[HarnessConfig] = None,
        w3: Optional[AsyncWeb3] = None,
        registry: Optional[ContractRegistry] = None,
        missing_ok: bool = False,
    ) -> "HarnessContext":
        config = config or HarnessConfig()
        if w3 is None:
            w3 = AsyncWeb3(AsyncHTTPProvider(config.rpc_url))
        if not await w3.is_connected():
            raise ConnectionError(f"Cannot connect to node at {config.rpc_url}. Please run: npx hardhat node")

        if registry is None:
            registry = ContractRegistry.load(w3, config.deployments_path, missing_ok=missing_ok)

        context = cls(
            w3=w3,
            config=config,
            registry=registry,
            sender=TransactionSender(w3, config),
            default_signer=Account.from_key(config.deployer_private_key),
        )
        status("OK", f"Connected, chain id {await w3.eth.chain_id}, {len(registry.names())} contracts in directory")
        return context
