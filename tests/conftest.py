import pytest
import pytest_asyncio
from eth_account import Account
from web3 import AsyncWeb3
from web3.providers.eth_tester import AsyncEthereumTesterProvider

from aa_fixtures.config import HarnessConfig
from aa_fixtures.context import HarnessContext
from aa_fixtures.registry import ContractRegistry
from support import fund


@pytest.fixture(autouse=True)
def quiet_output(monkeypatch):
    monkeypatch.setenv("AA_FIXTURES_QUIET", "1")


@pytest.fixture
def config(tmp_path):
    return HarnessConfig(
        deployments_path=tmp_path / "data" / "deployments.json",
        reports_dir=tmp_path / "data" / "reports",
    )


@pytest.fixture
def w3():
    return AsyncWeb3(AsyncEthereumTesterProvider())


@pytest_asyncio.fixture
async def context(w3, config):
    registry = ContractRegistry(w3, config.deployments_path)
    context = await HarnessContext.connect(config, w3=w3, registry=registry)
    await fund(w3, context.default_signer.address)
    return context


@pytest_asyncio.fixture
async def funded_account(w3):
    account = Account.create()
    await fund(w3, account.address)
    return account
