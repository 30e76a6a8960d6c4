from typing import Any, Optional, Sequence

from eth_account.signers.local import LocalAccount

from .compiler import SolidityCompiler
from .console import short, status
from .errors import DeploymentError, TransactionFailedError
from .models import CompiledArtifact, ContractHandle


class AdHocDeployer:
    """Compiles Solidity source on the fly and deploys it from a local account."""

    def __init__(self, context, compiler: Optional[SolidityCompiler] = None):
        self.context = context
        self.compiler = compiler or SolidityCompiler(context.config)

    async def deploy_contract(
        self,
        deployer: LocalAccount,
        source: str,
        contract_name: Optional[str] = None,
        args: Sequence[Any] = (),
    ) -> ContractHandle:
        artifact = await self.compiler.compile(source, contract_name)
        return await self.deploy_artifact(deployer, artifact, args)

    async def deploy_artifact(
        self,
        deployer: LocalAccount,
        artifact: CompiledArtifact,
        args: Sequence[Any] = (),
        value: int = 0,
    ) -> ContractHandle:
        status("DEPLOY", f"Deploying {artifact.contract_name} from {short(deployer.address)}")
        try:
            receipt = await self.context.sender.deploy(deployer, artifact, args, value)
        except TransactionFailedError as e:
            status("ERROR", f"{artifact.contract_name} deployment failed!")
            raise DeploymentError(f"Deployment of {artifact.contract_name} failed: {e}", e.tx_hash) from e

        address = receipt["contractAddress"]
        if not address:
            raise DeploymentError(f"Deployment of {artifact.contract_name} produced no contract address")

        status("OK", f"{artifact.contract_name} deployed at {address} (gas used {receipt['gasUsed']})")
        return self.context.registry.bind(address, artifact.abi, deployer)
