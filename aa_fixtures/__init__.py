"""Test fixtures for ERC-4337 account abstraction: singletons, counterfactual accounts and paymasters."""

from .accounts import CounterfactualAccountResolver, account_salt, create2_address
from .compiler import SolidityCompiler
from .config import HarnessConfig
from .context import HarnessContext
from .deployer import AdHocDeployer
from .errors import (
    AddressMismatchError,
    BootstrapError,
    CompilationError,
    DeploymentError,
    HarnessError,
    NotFoundError,
    TransactionFailedError,
)
from .models import CompiledArtifact, ContractHandle, ModuleSetup
from .paymaster import (
    DEFAULT_FUNDING_ORDER,
    BootstrapState,
    BootstrapStep,
    SponsorshipBootstrap,
    SponsorshipIntermediary,
)
from .registry import ContractName, ContractRegistry

__version__ = "0.1.0"
