from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes
from web3 import Web3


@dataclass(frozen=True)
class CompiledArtifact:
    """ABI and creation bytecode of one compiled contract, 0x-prefixed"""

    contract_name: str
    abi: List[Dict[str, Any]]
    bytecode: str

    def to_dict(self) -> Dict[str, Any]:
        return {"abi": self.abi, "bytecode": self.bytecode}


@dataclass(frozen=True)
class ContractHandle:
    """
    A live contract: its address, its ABI, the web3 contract object bound to
    both and the account that state-mutating calls are sent from.
    """

    address: str
    abi: List[Dict[str, Any]]
    contract: Any = field(repr=False, compare=False)
    signer: Optional[LocalAccount] = field(default=None, repr=False, compare=False)

    @property
    def functions(self):
        return self.contract.functions


@dataclass(frozen=True)
class ModuleSetup:
    """
    Inputs that seed a counterfactual account address: the module setup
    contract, the calldata it is initialised with and the account index.
    """

    setup_contract: str
    setup_data: Union[bytes, str] = b""
    index: int = 0

    def __post_init__(self):
        if isinstance(self.index, bool) or not isinstance(self.index, int) or self.index < 0:
            raise ValueError(f"index must be a non-negative integer, got {self.index!r}")
        object.__setattr__(self, "setup_contract", Web3.to_checksum_address(self.setup_contract))
        object.__setattr__(self, "setup_data", bytes(HexBytes(self.setup_data)))

    def as_args(self):
        return (self.setup_contract, self.setup_data, self.index)

    def with_index(self, index: int) -> "ModuleSetup":
        return ModuleSetup(self.setup_contract, self.setup_data, index)
