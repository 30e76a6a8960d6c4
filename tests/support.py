import pytest
import solcx
from solcx.exceptions import DownloadError, SolcInstallationError, UnsupportedVersionError
from web3 import Web3

from aa_fixtures.config import SOLC_VERSION


def solc_installed(version=SOLC_VERSION) -> bool:
    return version in [str(v) for v in solcx.get_installed_solc_versions()]


def ensure_solc(version=SOLC_VERSION) -> bool:
    """Install the configured solc once per session; False only when that fails"""
    if solc_installed(version):
        return True
    print(f"[INFO] Installing solc {version} for the test session...")
    try:
        solcx.install_solc(version)
    except (SolcInstallationError, DownloadError, UnsupportedVersionError, OSError) as e:
        print(f"[WARNING] Could not install solc {version}: {e}")
        return False
    return solc_installed(version)


SOLC_AVAILABLE = ensure_solc()

requires_solc = pytest.mark.skipif(not SOLC_AVAILABLE, reason=f"solc {SOLC_VERSION} could not be installed")


async def fund(w3, address, ether=100):
    accounts = await w3.eth.accounts
    tx_hash = await w3.eth.send_transaction({
        "from": accounts[0],
        "to": address,
        "value": Web3.to_wei(ether, "ether"),
    })
    await w3.eth.wait_for_transaction_receipt(tx_hash)
