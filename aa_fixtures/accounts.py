"""
Counterfactual smart accounts.

A factory computes the address an account will occupy from its module setup
before the account exists; ``deployCounterfactualAccount`` then creates it at
exactly that address (CREATE2). The same (setupContract, setupData, index)
triple must be used for both steps.
"""

from typing import Optional

from eth_abi import encode as abi_encode
from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError

from .console import short, status
from .errors import AddressMismatchError, DeploymentError, TransactionFailedError
from .models import ContractHandle, ModuleSetup
from .registry import ContractName


def create2_address(deployer: str, salt: bytes, init_code: bytes) -> str:
    """EIP-1014: keccak256(0xff ++ deployer ++ salt ++ keccak256(init_code))[12:]"""
    if len(salt) != 32:
        raise ValueError(f"salt must be 32 bytes, got {len(salt)}")
    deployer_bytes = bytes(HexBytes(Web3.to_checksum_address(deployer)))
    digest = Web3.keccak(b"\xff" + deployer_bytes + salt + Web3.keccak(init_code))
    return Web3.to_checksum_address(digest[12:])


def account_salt(setup: ModuleSetup) -> bytes:
    """Salt used by the bundled SmartAccountFactory for a module setup"""
    initializer = Web3.keccak(abi_encode(["address", "bytes"], [setup.setup_contract, setup.setup_data]))
    return Web3.solidity_keccak(["bytes32", "uint256"], [initializer, setup.index])


class CounterfactualAccountResolver:
    def __init__(self, context, factory: Optional[ContractHandle] = None, signer: Optional[LocalAccount] = None):
        self.context = context
        self.factory = factory or context.registry.get_smart_account_factory()
        if signer is None:
            signer = self.factory.signer if self.factory.signer is not None else context.default_signer
        self.signer = signer

    async def predict(self, setup: ModuleSetup) -> str:
        """Address the account for ``setup`` will occupy. Read-only and idempotent."""
        address = await self.factory.functions.getAddressForCounterfactualAccount(*setup.as_args()).call()
        return Web3.to_checksum_address(address)

    async def instantiate(self, setup: ModuleSetup) -> str:
        """
        Create the account through the factory and return the address the
        factory reported. The factory rejects a triple it already deployed;
        no deduplication happens here.
        """
        label = f"deployCounterfactualAccount(index={setup.index})"
        deploy = self.factory.functions.deployCounterfactualAccount
        try:
            created = await deploy(*setup.as_args()).call({"from": self.signer.address})
            await self.context.sender.transact(
                self.signer,
                deploy(*setup.as_args()),
                gas=self.context.config.deploy_gas_limit,
                label=label,
            )
        except ContractLogicError as e:
            raise DeploymentError(f"{label} reverted: {e}") from e
        except TransactionFailedError as e:
            raise DeploymentError(f"{label} failed: {e}", e.tx_hash) from e

        return Web3.to_checksum_address(created)

    async def get_smart_account_with_module(self, setup: ModuleSetup) -> ContractHandle:
        predicted = await self.predict(setup)
        status("CREATE", f"Creating smart account at {short(predicted)} (index {setup.index})")

        actual = await self.instantiate(setup)
        if actual != predicted:
            raise AddressMismatchError(predicted, actual, "factory created the account elsewhere")

        code = await self.context.w3.eth.get_code(predicted)
        if len(code) == 0:
            raise AddressMismatchError(predicted, actual, "no contract code at predicted address")

        status("OK", f"Smart account deployed at {predicted}")
        return self.context.registry.attach(ContractName.SMART_ACCOUNT, predicted, self.signer)

    def eoa_ownership_setup(self, owner: str, index: int = 0) -> ModuleSetup:
        """Module setup that makes ``owner`` the EOA owner of the new account"""
        module = self.context.registry.get_eoa_ownership_registry_module()
        setup_data = module.functions.initForSmartAccount(Web3.to_checksum_address(owner))._encode_transaction_data()
        return ModuleSetup(module.address, setup_data, index)
