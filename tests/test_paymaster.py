import pytest
from eth_account import Account
from web3.exceptions import TimeExhausted

from aa_fixtures.config import HarnessConfig
from aa_fixtures.errors import BootstrapError, DeploymentError
from aa_fixtures.models import CompiledArtifact
from aa_fixtures.paymaster import (
    DEFAULT_FUNDING_ORDER,
    BootstrapState,
    BootstrapStep,
    SponsorshipBootstrap,
    funding_order,
)
from aa_fixtures.registry import ContractName
from fakes import FakeDeployer, FakeEntryPoint, FakePaymaster, FakeRegistry, FakeSender, fake_context, handle

PAYMASTER_ARTIFACT = CompiledArtifact("VerifyingSingletonPaymaster", [], "0x6080")


@pytest.fixture
def owner():
    return Account.create()


@pytest.fixture
def verifying_signer():
    return Account.create()


def bootstrap_for(sender=None, deploy_error=None, config=None):
    entry_point = FakeEntryPoint()
    registry = FakeRegistry(entry_point, {ContractName.VERIFYING_SINGLETON_PAYMASTER: PAYMASTER_ARTIFACT})
    context = fake_context(sender=sender, registry=registry, config=config)
    deployer = FakeDeployer(entry_point, fail=deploy_error)
    return SponsorshipBootstrap(context, deployer=deployer), entry_point, deployer, context


async def test_full_bootstrap_reaches_ready(owner, verifying_signer):
    bootstrap, entry_point, deployer, context = bootstrap_for()
    config = context.config

    intermediary = await bootstrap.bootstrap(owner, verifying_signer)

    (paymaster,) = deployer.deployed
    assert intermediary.state is BootstrapState.READY
    assert intermediary.ready
    assert intermediary.completed == DEFAULT_FUNDING_ORDER
    assert paymaster.owner == owner.address
    assert paymaster.verifying_signer == verifying_signer.address
    assert entry_point.stakes[paymaster.address] == (config.paymaster_stake, config.paymaster_unlock_delay)
    assert await intermediary.signer_balance() == config.signer_deposit
    assert await intermediary.entry_point_deposit() == config.entry_point_deposit
    assert await intermediary.can_sponsor(10 ** 16)


async def test_transactions_are_sent_in_order_by_the_right_keys(owner, verifying_signer):
    bootstrap, _, _, context = bootstrap_for()

    await bootstrap.bootstrap(owner, verifying_signer)

    funder = context.default_signer.address
    assert context.sender.sent == [
        ("addStake", owner.address, context.config.paymaster_stake),
        ("depositFor", funder, context.config.signer_deposit),
        ("depositTo", funder, context.config.entry_point_deposit),
    ]


async def test_deposit_before_stake_also_reaches_ready(owner, verifying_signer):
    bootstrap, _, _, _ = bootstrap_for()
    order = (BootstrapStep.SIGNER_DEPOSIT, BootstrapStep.STAKE, BootstrapStep.ENTRY_POINT_DEPOSIT)

    intermediary = await bootstrap.bootstrap(owner, verifying_signer, steps=order)

    assert intermediary.state is BootstrapState.READY
    assert await intermediary.can_sponsor(10 ** 16)


async def test_without_entry_point_deposit_paymaster_cannot_sponsor(owner, verifying_signer):
    bootstrap, _, _, _ = bootstrap_for()

    intermediary = await bootstrap.bootstrap(
        owner, verifying_signer, steps=(BootstrapStep.STAKE, BootstrapStep.SIGNER_DEPOSIT)
    )

    assert intermediary.state is BootstrapState.SIGNER_FUNDED
    assert not intermediary.ready
    assert await intermediary.entry_point_deposit() == 0
    assert not await intermediary.can_sponsor(10 ** 16)


async def test_deposit_without_stake_cannot_sponsor(owner, verifying_signer):
    bootstrap, _, _, _ = bootstrap_for()

    intermediary = await bootstrap.bootstrap(
        owner, verifying_signer, steps=(BootstrapStep.SIGNER_DEPOSIT, BootstrapStep.ENTRY_POINT_DEPOSIT)
    )

    assert intermediary.state is BootstrapState.ENTRY_POINT_FUNDED
    assert not await intermediary.can_sponsor(10 ** 16)


@pytest.mark.parametrize("failing, reached", [
    ("addStake", BootstrapState.DEPLOYED),
    ("depositFor", BootstrapState.STAKED),
    ("depositTo", BootstrapState.SIGNER_FUNDED),
])
async def test_failed_transition_is_identified(owner, verifying_signer, failing, reached):
    bootstrap, _, _, _ = bootstrap_for(sender=FakeSender(fail_on=failing))

    with pytest.raises(BootstrapError) as exc:
        await bootstrap.bootstrap(owner, verifying_signer)

    error = exc.value
    assert error.state is reached
    assert error.intermediary.state is reached
    assert error.step in DEFAULT_FUNDING_ORDER
    assert error.cause.label == failing
    assert error.step.value in str(error)


async def test_failed_deployment_leaves_nothing(owner, verifying_signer):
    bootstrap, _, _, context = bootstrap_for(deploy_error=DeploymentError("reverted", "0x01"))

    with pytest.raises(BootstrapError) as exc:
        await bootstrap.bootstrap(owner, verifying_signer)

    assert exc.value.step is BootstrapStep.DEPLOY
    assert exc.value.state is BootstrapState.UNFUNDED
    assert exc.value.intermediary is None
    assert context.sender.sent == []


async def test_existing_paymaster_is_funded_without_redeploying(owner, verifying_signer):
    bootstrap, entry_point, deployer, _ = bootstrap_for()
    existing = FakePaymaster(entry_point, owner.address, verifying_signer.address, address="0x" + "cc" * 20)

    intermediary = await bootstrap.bootstrap(owner, verifying_signer, paymaster=handle(existing))

    assert deployer.deployed == []
    assert intermediary.address == existing.address
    assert intermediary.ready


async def test_amounts_come_from_config(owner, verifying_signer):
    config = HarnessConfig(paymaster_stake=5, paymaster_unlock_delay=99, signer_deposit=6, entry_point_deposit=7)
    bootstrap, entry_point, deployer, _ = bootstrap_for(config=config)

    intermediary = await bootstrap.bootstrap(owner, verifying_signer)

    assert entry_point.stakes[intermediary.address] == (5, 99)
    assert await intermediary.signer_balance() == 6
    assert await intermediary.entry_point_deposit() == 7
    assert not await intermediary.can_sponsor(8)


def test_funding_order_validation():
    assert funding_order(["add_stake", "entry_point_deposit"]) == (
        BootstrapStep.STAKE,
        BootstrapStep.ENTRY_POINT_DEPOSIT,
    )
    with pytest.raises(ValueError):
        funding_order([BootstrapStep.STAKE, BootstrapStep.STAKE])
    with pytest.raises(ValueError):
        funding_order([BootstrapStep.DEPLOY])
    with pytest.raises(ValueError):
        funding_order(["withdraw"])


class StalledSender(FakeSender):
    """Never sees a receipt for ``stall_on``"""

    def __init__(self, stall_on):
        super().__init__()
        self.stall_on = stall_on

    async def transact(self, signer, function, value=0, gas=None, label=None):
        if function.fn_name == self.stall_on:
            raise TimeExhausted("Transaction 0xabc is not in the chain after 120 seconds")
        return await super().transact(signer, function, value, gas, label)


async def test_receipt_timeout_names_the_stalled_step(owner, verifying_signer):
    bootstrap, _, _, _ = bootstrap_for(sender=StalledSender("depositFor"))

    with pytest.raises(BootstrapError) as exc:
        await bootstrap.bootstrap(owner, verifying_signer)

    assert exc.value.step is BootstrapStep.SIGNER_DEPOSIT
    assert exc.value.state is BootstrapState.STAKED
    assert exc.value.intermediary.pending == (BootstrapStep.SIGNER_DEPOSIT, BootstrapStep.ENTRY_POINT_DEPOSIT)
    assert isinstance(exc.value.__cause__, TimeExhausted)


async def test_deployment_timeout_is_a_bootstrap_error(owner, verifying_signer):
    bootstrap, _, _, _ = bootstrap_for(deploy_error=TimeExhausted("not in the chain"))

    with pytest.raises(BootstrapError) as exc:
        await bootstrap.bootstrap(owner, verifying_signer)

    assert exc.value.step is BootstrapStep.DEPLOY
    assert exc.value.state is BootstrapState.UNFUNDED


async def test_state_follows_last_step_and_pending_lists_the_rest(owner, verifying_signer):
    bootstrap, _, _, _ = bootstrap_for()

    intermediary = await bootstrap.bootstrap(
        owner, verifying_signer, steps=(BootstrapStep.ENTRY_POINT_DEPOSIT, BootstrapStep.STAKE)
    )

    assert intermediary.state is BootstrapState.STAKED
    assert intermediary.pending == (BootstrapStep.SIGNER_DEPOSIT,)
    assert not intermediary.ready
    assert await intermediary.can_sponsor(10 ** 16)
