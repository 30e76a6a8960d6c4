"""
Compiles Solidity source text at test time through solc's standard-JSON
interface (py-solc-x).
"""

import asyncio
from typing import Any, Callable, Dict, Mapping, Optional

import solcx
from solcx.exceptions import SolcError, SolcNotInstalled

from .config import HarnessConfig
from .console import status
from .errors import CompilationError
from .models import CompiledArtifact

SOURCE_UNIT = "tmp.sol"


def standard_input(sources: Mapping[str, str], optimize: bool = False) -> Dict[str, Any]:
    settings = {
        "outputSelection": {
            "*": {
                "*": ["abi", "evm.bytecode"],
            },
        },
    }
    if optimize:
        settings["optimizer"] = {"enabled": True, "runs": 200}
    return {
        "language": "Solidity",
        "settings": settings,
        "sources": {name: {"content": content} for name, content in sources.items()},
    }


def _artifact(name: str, data: Dict[str, Any]) -> CompiledArtifact:
    return CompiledArtifact(
        contract_name=name,
        abi=data["abi"],
        bytecode="0x" + data["evm"]["bytecode"]["object"],
    )


def select_contract(artifacts: Mapping[str, CompiledArtifact], contract_name: Optional[str] = None) -> CompiledArtifact:
    """
    Pick the artifact to deploy from one compiled source unit.

    A named contract must exist and carry bytecode. Without a name the unit
    must define exactly one deployable contract; interfaces and abstract
    contracts (empty bytecode) are not candidates.
    """
    if contract_name is not None:
        if contract_name not in artifacts:
            raise CompilationError(
                f"Contract '{contract_name}' not found, compiled: {sorted(artifacts)}",
                output=sorted(artifacts),
            )
        artifact = artifacts[contract_name]
        if artifact.bytecode == "0x":
            raise CompilationError(f"Contract '{contract_name}' has no bytecode (interface or abstract contract)")
        return artifact

    deployable = [artifact for artifact in artifacts.values() if artifact.bytecode != "0x"]
    if len(deployable) != 1:
        names = sorted(artifact.contract_name for artifact in deployable)
        raise CompilationError(
            f"Expected exactly one deployable contract, found {len(deployable)}: {names}. "
            "Pass contract_name to choose one.",
            output=names,
        )
    return deployable[0]


class SolidityCompiler:
    def __init__(self, config: Optional[HarnessConfig] = None, compile_standard: Optional[Callable] = None):
        self.config = config or HarnessConfig()
        self._compile_standard = compile_standard

    def ensure_solc(self):
        """Make sure the configured solc version is available, installing it if allowed"""
        version = self.config.solc_version
        installed = [str(v) for v in solcx.get_installed_solc_versions()]
        if version in installed:
            return

        if not self.config.install_solc:
            raise CompilationError(
                f"solc {version} is not installed. Install it with solcx.install_solc('{version}') "
                "or set AA_FIXTURES_INSTALL_SOLC=1"
            )
        status("INFO", f"Installing solc {version}...")
        solcx.install_solc(version)
        status("OK", f"solc {version} installed successfully")

    def _invoke(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        if self._compile_standard is None:
            self.ensure_solc()
            compile_standard = solcx.compile_standard
        else:
            compile_standard = self._compile_standard

        try:
            return compile_standard(input_data, solc_version=self.config.solc_version)
        except SolcError as e:
            status("ERROR", f"solc reported errors:\n{e.message}")
            raise CompilationError("Could not compile contract", output=e.error_dict or e.stdout_data) from e
        except SolcNotInstalled as e:
            raise CompilationError(str(e)) from e

    async def _run(self, sources: Mapping[str, str]) -> Dict[str, Any]:
        input_data = standard_input(sources, optimize=self.config.optimize)
        output = await asyncio.to_thread(self._invoke, input_data)
        if not output.get("contracts"):
            status("ERROR", f"Compiler output has no contracts: {output}")
            raise CompilationError("Could not compile contract", output=output)
        return output

    async def compile(self, source: str, contract_name: Optional[str] = None) -> CompiledArtifact:
        """Compile one source unit and return the artifact of its contract"""
        status("COMPILE", f"Compiling {contract_name or 'source'} ({len(source)} chars)")
        output = await self._run({SOURCE_UNIT: source})

        file_output = output["contracts"].get(SOURCE_UNIT, {})
        artifacts = {name: _artifact(name, data) for name, data in file_output.items()}
        return select_contract(artifacts, contract_name)

    async def compile_sources(self, sources: Mapping[str, str]) -> Dict[str, CompiledArtifact]:
        """Compile several files that may import each other, keyed by contract name"""
        status("COMPILE", f"Compiling {len(sources)} source files")
        output = await self._run(sources)

        artifacts: Dict[str, CompiledArtifact] = {}
        for unit, contracts in output["contracts"].items():
            for name, data in contracts.items():
                if name in artifacts:
                    raise CompilationError(f"Contract name '{name}' is defined more than once ({unit})")
                artifacts[name] = _artifact(name, data)
        return artifacts
