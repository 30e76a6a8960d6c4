import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pandas as pd

from .console import status


class DeploymentReport:
    """Deployed contracts and verification checks of one run, saved as JSON and CSV"""

    def __init__(self, network: Dict[str, Any] = None):
        self.network = network or {}
        self.contracts: List[Dict[str, Any]] = []
        self.checks: List[Tuple[str, bool]] = []
        self.timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    def add_contract(self, name: str, address: str, code_size: int, deployed_by: str):
        self.contracts.append({
            "name": name,
            "address": address,
            "code_size": code_size,
            "deployed_by": deployed_by,
        })

    def add_check(self, check: str, passed: bool):
        self.checks.append((check, bool(passed)))

    @property
    def passed(self) -> bool:
        return all(ok for _, ok in self.checks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "network": self.network,
            "contracts": self.contracts,
            "verification": {
                "passed": self.passed,
                "checks": [{"check": check, "passed": ok} for check, ok in self.checks],
            },
        }

    def save(self, reports_dir: Path) -> Tuple[Path, Path]:
        reports_dir = Path(reports_dir)
        reports_dir.mkdir(parents=True, exist_ok=True)

        json_path = reports_dir / f"deployment_{self.timestamp}.json"
        with open(json_path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

        csv_path = reports_dir / f"deployment_{self.timestamp}.csv"
        pd.DataFrame(self.contracts, columns=["name", "address", "code_size", "deployed_by"]).to_csv(csv_path, index=False)

        status("OK", f"Deployment report saved: {json_path}, {csv_path}")
        return json_path, csv_path

    def print_summary(self):
        print("\n[VERIFICATION SUMMARY]")
        for check, ok in self.checks:
            print(f"  {'✓' if ok else '✗'} {check}: {ok}")
        ok_count = sum(1 for _, ok in self.checks if ok)
        print(f"\n  Total: {ok_count}/{len(self.checks)} checks passed")
