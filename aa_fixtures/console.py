"""Tagged status lines, e.g. ``[DEPLOY] Deploying EntryPoint...``"""

import os


def quiet() -> bool:
    return os.getenv("AA_FIXTURES_QUIET", "").lower() in ("1", "true", "yes")


def status(tag: str, message: str):
    if not quiet():
        print(f"[{tag}] {message}", flush=True)


def short(address: str) -> str:
    return f"{address[:10]}..."
