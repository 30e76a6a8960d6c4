"""Signs transactions with local keys, sends them raw and waits for the receipt."""

from typing import Any, Dict, Optional, Sequence

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import ContractLogicError, Web3RPCError

from .config import HarnessConfig
from .console import short, status
from .errors import TransactionFailedError
from .models import CompiledArtifact


class TransactionSender:
    def __init__(self, w3, config: HarnessConfig):
        self.w3 = w3
        self.config = config

    async def base_transaction(self, signer: LocalAccount, gas: int, value: int = 0) -> Dict[str, Any]:
        tx = {
            "from": signer.address,
            "nonce": await self.w3.eth.get_transaction_count(signer.address),
            "gas": gas,
            "value": value,
            "chainId": await self.w3.eth.chain_id,
        }
        if self.config.gas_price is not None:
            tx["gasPrice"] = self.config.gas_price
        return tx

    async def send(self, signer: LocalAccount, transaction: Dict[str, Any], label: str):
        """Sign, submit and wait for exactly one confirmation"""
        signed = signer.sign_transaction(transaction)
        try:
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except (ContractLogicError, Web3RPCError) as e:
            raise TransactionFailedError(label, reason=str(e)) from e

        tx_hex = Web3.to_hex(tx_hash)
        status("TX", f"{label}: {tx_hex}")
        receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.config.receipt_timeout)

        if receipt["status"] != 1:
            raise TransactionFailedError(label, tx_hex, receipt, "status 0")
        return receipt

    async def transact(
        self,
        signer: LocalAccount,
        function,
        value: int = 0,
        gas: Optional[int] = None,
        label: Optional[str] = None,
    ):
        """Send a state-mutating contract call, e.g. ``contract.functions.addStake(10)``"""
        label = label or getattr(function, "fn_name", "contract call")
        base = await self.base_transaction(signer, gas or self.config.call_gas_limit, value)
        try:
            transaction = await function.build_transaction(base)
        except ContractLogicError as e:
            raise TransactionFailedError(label, reason=str(e)) from e
        return await self.send(signer, transaction, label)

    async def deploy(
        self,
        signer: LocalAccount,
        artifact: CompiledArtifact,
        args: Sequence[Any] = (),
        value: int = 0,
        gas: Optional[int] = None,
    ):
        """Send a contract-creation transaction for ``artifact``, returns the receipt"""
        label = f"deploy {artifact.contract_name}"
        contract = self.w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
        base = await self.base_transaction(signer, gas or self.config.deploy_gas_limit, value)
        transaction = await contract.constructor(*args).build_transaction(base)
        return await self.send(signer, transaction, label)

    async def transfer(self, signer: LocalAccount, to: str, value: int):
        status("TRANSFER", f"Sending {Web3.from_wei(value, 'ether')} ETH from {short(signer.address)} to {short(to)}")
        tx = await self.base_transaction(signer, 100000, value)
        tx["to"] = Web3.to_checksum_address(to)
        if "gasPrice" not in tx:
            tx.update(await self._fee_fields())
        return await self.send(signer, tx, "transfer")

    async def _fee_fields(self) -> Dict[str, int]:
        # plain transfers skip build_transaction, so fill EIP-1559 fees here
        latest = await self.w3.eth.get_block("latest")
        priority = await self.w3.eth.max_priority_fee
        return {
            "maxPriorityFeePerGas": priority,
            "maxFeePerGas": priority + 2 * latest["baseFeePerGas"],
        }
