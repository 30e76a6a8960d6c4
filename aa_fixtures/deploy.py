"""
Deploys the account-abstraction singletons from the bundled Solidity sources
and writes them into the deployment directory.

Order: EntryPoint, SmartAccount implementation, SmartAccountFactory,
EOAOwnershipRegistryModule, MockToken. VerifyingSingletonPaymaster and Proxy
are only recorded as artifacts; paymasters are deployed per test by
``SponsorshipBootstrap``.
"""

from importlib import resources
from typing import Dict, Optional

from eth_account.signers.local import LocalAccount

from .compiler import SolidityCompiler
from .console import status
from .deployer import AdHocDeployer
from .models import ContractHandle
from .registry import CONTRACT_SOURCES, ContractName
from .report import DeploymentReport


def bundled_sources() -> Dict[str, str]:
    contracts = resources.files("aa_fixtures") / "contracts"
    return {filename: (contracts / filename).read_text(encoding="utf-8") for filename in sorted(set(CONTRACT_SOURCES.values()))}


async def deploy_singletons(
    context,
    deployer: Optional[LocalAccount] = None,
    compiler: Optional[SolidityCompiler] = None,
    report: Optional[DeploymentReport] = None,
) -> Dict[ContractName, ContractHandle]:
    deployer = deployer or context.default_signer
    compiler = compiler or SolidityCompiler(context.config)
    ad_hoc = AdHocDeployer(context, compiler)
    registry = context.registry

    artifacts = await compiler.compile_sources(bundled_sources())
    for name in ContractName:
        registry.record(name, artifact=artifacts[name.value])

    handles: Dict[ContractName, ContractHandle] = {}

    async def deploy(name: ContractName, *args):
        handle = await ad_hoc.deploy_artifact(deployer, artifacts[name.value], args)
        registry.record(name, address=handle.address)
        handles[name] = handle
        if report is not None:
            code = await context.w3.eth.get_code(handle.address)
            report.add_contract(name.value, handle.address, len(code), deployer.address)
        return handle

    entry_point = await deploy(ContractName.ENTRY_POINT)
    implementation = await deploy(ContractName.SMART_ACCOUNT, entry_point.address)
    await deploy(ContractName.SMART_ACCOUNT_FACTORY, implementation.address)
    await deploy(ContractName.EOA_OWNERSHIP_REGISTRY_MODULE)
    await deploy(ContractName.MOCK_TOKEN)

    if registry.path is not None:
        path = registry.save()
        status("OK", f"Deployment directory saved to {path}")
    return handles


async def verify_singletons(context, report: DeploymentReport) -> bool:
    """Check that the deployed singletons are wired to each other"""
    registry = context.registry
    entry_point = registry.get_entry_point()
    implementation = registry.get_smart_account_implementation()
    factory = registry.get_smart_account_factory()

    for name in (ContractName.ENTRY_POINT, ContractName.SMART_ACCOUNT, ContractName.SMART_ACCOUNT_FACTORY):
        code = await context.w3.eth.get_code(registry.address(name))
        report.add_check(f"{name.value} Code", len(code) > 0)

    linked_entry_point = await implementation.functions.entryPoint().call()
    report.add_check("EntryPoint Link", linked_entry_point == entry_point.address)

    factory_implementation = await factory.functions.basicImplementation().call()
    report.add_check("Factory Implementation", factory_implementation == implementation.address)

    return report.passed
