"""
Verifying paymaster bootstrap.

A freshly deployed VerifyingSingletonPaymaster cannot sponsor anything until
three balances are funded, each by its own transaction:

    1. the owner's stake on the entry point (addStake, with an unlock delay)
    2. the deposit credited to the verifying signer (depositFor)
    3. the paymaster's deposit held by the entry point (depositTo)

There is no atomicity across them. When a transaction fails the paymaster is
left with whatever was funded before and a BootstrapError says which step
broke; the whole bootstrap has to be run again from scratch.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Tuple

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import TimeExhausted

from .console import short, status
from .deployer import AdHocDeployer
from .errors import BootstrapError, DeploymentError, TransactionFailedError
from .models import ContractHandle
from .registry import ContractName


class BootstrapState(str, Enum):
    UNFUNDED = "unfunded"
    DEPLOYED = "deployed"
    STAKED = "staked"
    SIGNER_FUNDED = "signer_funded"
    ENTRY_POINT_FUNDED = "entry_point_funded"
    READY = "ready"


class BootstrapStep(str, Enum):
    DEPLOY = "deploy"
    STAKE = "add_stake"
    SIGNER_DEPOSIT = "deposit_for_signer"
    ENTRY_POINT_DEPOSIT = "entry_point_deposit"


DEFAULT_FUNDING_ORDER = (
    BootstrapStep.STAKE,
    BootstrapStep.SIGNER_DEPOSIT,
    BootstrapStep.ENTRY_POINT_DEPOSIT,
)

_STATE_AFTER = {
    BootstrapStep.STAKE: BootstrapState.STAKED,
    BootstrapStep.SIGNER_DEPOSIT: BootstrapState.SIGNER_FUNDED,
    BootstrapStep.ENTRY_POINT_DEPOSIT: BootstrapState.ENTRY_POINT_FUNDED,
}


@dataclass(frozen=True)
class SponsorshipIntermediary:
    paymaster: ContractHandle
    entry_point: ContractHandle
    owner: str
    verifying_signer: str
    completed: Tuple[BootstrapStep, ...] = ()

    @property
    def address(self) -> str:
        return self.paymaster.address

    @property
    def state(self) -> BootstrapState:
        """
        Last state reached: READY once every funding step is done, otherwise
        the state after the most recently completed step. Use ``pending`` to
        see which balances are still unfunded.
        """
        if not self.pending:
            return BootstrapState.READY
        if not self.completed:
            return BootstrapState.DEPLOYED
        return _STATE_AFTER[self.completed[-1]]

    @property
    def pending(self) -> Tuple[BootstrapStep, ...]:
        return tuple(step for step in DEFAULT_FUNDING_ORDER if step not in self.completed)

    @property
    def ready(self) -> bool:
        return self.state is BootstrapState.READY

    async def entry_point_deposit(self) -> int:
        return await self.entry_point.functions.balanceOf(self.address).call()

    async def signer_balance(self) -> int:
        return await self.paymaster.functions.getBalance(self.verifying_signer).call()

    async def can_sponsor(self, max_cost: int) -> bool:
        """Whether the entry point would accept this paymaster for an op costing ``max_cost`` wei"""
        deposit, staked, _stake, _delay = await self.entry_point.functions.getDepositInfo(self.address).call()
        return bool(staked) and deposit >= max_cost


def funding_order(steps: Iterable) -> Tuple[BootstrapStep, ...]:
    order = tuple(BootstrapStep(step) for step in steps)
    if len(set(order)) != len(order):
        raise ValueError(f"Funding steps must not repeat: {[step.value for step in order]}")
    for step in order:
        if step not in DEFAULT_FUNDING_ORDER:
            raise ValueError(f"'{step.value}' is not a funding step")
    return order


class SponsorshipBootstrap:
    """
    Deploys (or takes over) a verifying paymaster and funds it.

    Amounts and the unlock delay come from ``HarnessConfig``. The stake is
    paid by the owner, the two deposits by ``funder`` (the context's default
    signer unless given).
    """

    def __init__(self, context, deployer: Optional[AdHocDeployer] = None, funder: Optional[LocalAccount] = None):
        self.context = context
        self.config = context.config
        self.deployer = deployer or AdHocDeployer(context)
        self.funder = funder or context.default_signer

    async def bootstrap(
        self,
        owner: LocalAccount,
        verifying_signer: LocalAccount,
        paymaster: Optional[ContractHandle] = None,
        steps: Iterable = DEFAULT_FUNDING_ORDER,
    ) -> SponsorshipIntermediary:
        order = funding_order(steps)
        entry_point = self.context.registry.get_entry_point(self.funder)

        if paymaster is None:
            paymaster = await self._deploy(owner, verifying_signer, entry_point)
        else:
            status("INFO", f"Using existing paymaster at {paymaster.address}")

        intermediary = SponsorshipIntermediary(
            paymaster=paymaster,
            entry_point=entry_point,
            owner=owner.address,
            verifying_signer=verifying_signer.address,
        )

        for step in order:
            try:
                await self._fund(step, intermediary, owner)
            except (TransactionFailedError, TimeExhausted) as e:
                status("ERROR", f"Paymaster {short(intermediary.address)}: {step.value} failed")
                raise BootstrapError(step, intermediary.state, intermediary, e) from e
            intermediary = replace(intermediary, completed=intermediary.completed + (step,))
            status("OK", f"Paymaster {short(intermediary.address)} -> {intermediary.state.value}")

        return intermediary

    async def _deploy(self, owner, verifying_signer, entry_point) -> ContractHandle:
        artifact = self.context.registry.artifact(ContractName.VERIFYING_SINGLETON_PAYMASTER)
        try:
            return await self.deployer.deploy_artifact(
                self.funder,
                artifact,
                args=(owner.address, entry_point.address, verifying_signer.address),
            )
        except (DeploymentError, TimeExhausted) as e:
            raise BootstrapError(BootstrapStep.DEPLOY, BootstrapState.UNFUNDED, None, e) from e

    async def _fund(self, step: BootstrapStep, intermediary: SponsorshipIntermediary, owner: LocalAccount):
        sender = self.context.sender
        paymaster = intermediary.paymaster

        if step is BootstrapStep.STAKE:
            status("STAKE", f"addStake({self.config.paymaster_unlock_delay}) "
                            f"with {Web3.from_wei(self.config.paymaster_stake, 'ether')} ETH")
            await sender.transact(
                owner,
                paymaster.functions.addStake(self.config.paymaster_unlock_delay),
                value=self.config.paymaster_stake,
                label="addStake",
            )
        elif step is BootstrapStep.SIGNER_DEPOSIT:
            status("DEPOSIT", f"depositFor({short(intermediary.verifying_signer)}) "
                              f"with {Web3.from_wei(self.config.signer_deposit, 'ether')} ETH")
            await sender.transact(
                self.funder,
                paymaster.functions.depositFor(intermediary.verifying_signer),
                value=self.config.signer_deposit,
                label="depositFor",
            )
        else:
            status("DEPOSIT", f"entryPoint.depositTo({short(intermediary.address)}) "
                              f"with {Web3.from_wei(self.config.entry_point_deposit, 'ether')} ETH")
            await sender.transact(
                self.funder,
                intermediary.entry_point.functions.depositTo(intermediary.address),
                value=self.config.entry_point_deposit,
                label="depositTo",
            )
