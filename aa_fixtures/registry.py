"""
Deployment directory: maps the known logical contract names to their deployed
address, ABI and (where available) creation bytecode.

The directory is the JSON file written by ``deploy_singletons``::

    {"contracts": {"EntryPoint": {"address": "0x...", "abi": [...], "bytecode": "0x..."}}}
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from eth_account.signers.local import LocalAccount

from .console import status
from .errors import NotFoundError
from .models import CompiledArtifact, ContractHandle


class ContractName(str, Enum):
    ENTRY_POINT = "EntryPoint"
    SMART_ACCOUNT = "SmartAccount"
    SMART_ACCOUNT_FACTORY = "SmartAccountFactory"
    EOA_OWNERSHIP_REGISTRY_MODULE = "EOAOwnershipRegistryModule"
    MOCK_TOKEN = "MockToken"
    VERIFYING_SINGLETON_PAYMASTER = "VerifyingSingletonPaymaster"
    PROXY = "Proxy"


# Bundled Solidity source defining each contract (aa_fixtures/contracts/)
CONTRACT_SOURCES = {
    ContractName.ENTRY_POINT: "EntryPoint.sol",
    ContractName.SMART_ACCOUNT: "SmartAccount.sol",
    ContractName.SMART_ACCOUNT_FACTORY: "SmartAccountFactory.sol",
    ContractName.EOA_OWNERSHIP_REGISTRY_MODULE: "EOAOwnershipRegistryModule.sol",
    ContractName.MOCK_TOKEN: "MockToken.sol",
    ContractName.VERIFYING_SINGLETON_PAYMASTER: "VerifyingSingletonPaymaster.sol",
    ContractName.PROXY: "Proxy.sol",
}

NameLike = Union[ContractName, str]


def contract_name(name: NameLike) -> ContractName:
    if isinstance(name, ContractName):
        return name
    try:
        return ContractName(name)
    except ValueError:
        raise NotFoundError(str(name), "unknown contract name") from None


class ContractRegistry:
    def __init__(self, w3, path: Optional[Path] = None, entries: Optional[Dict[str, Dict[str, Any]]] = None):
        self.w3 = w3
        self.path = Path(path) if path is not None else None
        self._entries: Dict[ContractName, Dict[str, Any]] = {}
        for name, entry in (entries or {}).items():
            self._entries[contract_name(name)] = dict(entry)

    @classmethod
    def load(cls, w3, path: Path, missing_ok: bool = False) -> "ContractRegistry":
        path = Path(path)
        if not path.exists():
            if missing_ok:
                return cls(w3, path)
            raise FileNotFoundError(f"Deployments file not found at {path}")

        with open(path, "r") as f:
            data = json.load(f)

        entries = {}
        for name, entry in data.get("contracts", {}).items():
            try:
                entries[contract_name(name)] = entry
            except NotFoundError:
                status("WARNING", f"Ignoring unknown contract '{name}' in {path}")
        return cls(w3, path, entries)

    def save(self, path: Optional[Path] = None) -> Path:
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("No deployments path configured")
        target.parent.mkdir(parents=True, exist_ok=True)

        data = {"contracts": {name.value: entry for name, entry in self._entries.items()}}
        with open(target, "w") as f:
            json.dump(data, f, indent=2)
        return target

    def names(self) -> List[ContractName]:
        return list(self._entries)

    def _entry(self, name: NameLike) -> Dict[str, Any]:
        key = contract_name(name)
        entry = self._entries.get(key)
        if entry is None:
            raise NotFoundError(key.value)
        return entry

    def address(self, name: NameLike) -> str:
        entry = self._entry(name)
        if not entry.get("address"):
            raise NotFoundError(contract_name(name).value, "has no deployed address")
        return self.w3.to_checksum_address(entry["address"])

    def abi(self, name: NameLike) -> List[Dict[str, Any]]:
        entry = self._entry(name)
        if "abi" not in entry:
            raise NotFoundError(contract_name(name).value, "has no ABI")
        return entry["abi"]

    def artifact(self, name: NameLike) -> CompiledArtifact:
        entry = self._entry(name)
        if not entry.get("bytecode"):
            raise NotFoundError(contract_name(name).value, "has no bytecode")
        return CompiledArtifact(contract_name(name).value, entry["abi"], entry["bytecode"])

    def bind(self, address: str, abi, signer: Optional[LocalAccount] = None) -> ContractHandle:
        address = self.w3.to_checksum_address(address)
        return ContractHandle(
            address=address,
            abi=abi,
            contract=self.w3.eth.contract(address=address, abi=abi),
            signer=signer,
        )

    def resolve(self, name: NameLike, signer: Optional[LocalAccount] = None) -> ContractHandle:
        """Live handle for a deployed singleton, raises NotFoundError when absent"""
        return self.bind(self.address(name), self.abi(name), signer)

    def attach(self, name: NameLike, address: str, signer: Optional[LocalAccount] = None) -> ContractHandle:
        """Handle at an arbitrary address using the ABI registered for ``name``"""
        return self.bind(address, self.abi(name), signer)

    def record(self, name: NameLike, address: Optional[str] = None, artifact: Optional[CompiledArtifact] = None):
        key = contract_name(name)
        entry = self._entries.setdefault(key, {})
        if artifact is not None:
            entry.update(artifact.to_dict())
        if address is not None:
            entry["address"] = self.w3.to_checksum_address(address)

    # Accessors for the account-abstraction singletons

    def get_entry_point(self, signer=None) -> ContractHandle:
        return self.resolve(ContractName.ENTRY_POINT, signer)

    def get_smart_account_implementation(self, signer=None) -> ContractHandle:
        return self.resolve(ContractName.SMART_ACCOUNT, signer)

    def get_smart_account_factory(self, signer=None) -> ContractHandle:
        return self.resolve(ContractName.SMART_ACCOUNT_FACTORY, signer)

    def get_eoa_ownership_registry_module(self, signer=None) -> ContractHandle:
        return self.resolve(ContractName.EOA_OWNERSHIP_REGISTRY_MODULE, signer)

    def get_mock_token(self, signer=None) -> ContractHandle:
        return self.resolve(ContractName.MOCK_TOKEN, signer)
