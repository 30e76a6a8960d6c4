"""Exception taxonomy of the fixture harness. Nothing here is retried."""

from typing import Any, Optional


class HarnessError(Exception):
    """Base class for every error raised by aa_fixtures"""


class NotFoundError(HarnessError, KeyError):
    """A logical contract name is missing from the deployment directory"""

    def __init__(self, name: str, detail: str = "not found in deployment directory"):
        self.name = name
        super().__init__(f"{name}: {detail}")

    def __str__(self):
        return self.args[0]


class CompilationError(HarnessError):
    """
    The compiler produced no usable contract.

    ``output`` holds the raw compiler output (or diagnostics) so the caller
    can inspect what solc actually reported.
    """

    def __init__(self, message: str, output: Any = None):
        super().__init__(message)
        self.output = output


class TransactionFailedError(HarnessError):
    """A transaction reverted or was rejected by the node"""

    def __init__(self, label: str, tx_hash: Optional[str] = None, receipt: Any = None, reason: str = ""):
        self.label = label
        self.tx_hash = tx_hash
        self.receipt = receipt
        self.reason = reason
        message = f"{label} failed"
        if tx_hash:
            message += f", hash: {tx_hash}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class DeploymentError(HarnessError):
    """A contract-creation transaction reverted or could not be sent"""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class AddressMismatchError(HarnessError):
    """
    The counterfactual address predicted by a factory does not hold the
    instantiated account. This points to a factory bug and should end the run.
    """

    def __init__(self, predicted: str, actual: Optional[str], detail: str = ""):
        self.predicted = predicted
        self.actual = actual
        message = f"predicted {predicted}, got {actual}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class BootstrapError(HarnessError):
    """
    A paymaster bootstrap transition failed.

    ``step`` names the transition that failed, ``state`` the last state that
    was reached and ``intermediary`` the partially funded paymaster (None when
    the deployment itself failed).
    """

    def __init__(self, step, state, intermediary=None, cause: Optional[BaseException] = None):
        self.step = step
        self.state = state
        self.intermediary = intermediary
        self.cause = cause
        step_name = getattr(step, "value", step)
        state_name = getattr(state, "value", state)
        message = f"paymaster bootstrap failed at '{step_name}' (left in state '{state_name}')"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
