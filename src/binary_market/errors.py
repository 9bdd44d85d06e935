"""Market error codes and custom exceptions.

Error code ranges:
  1xxx: Phase (operation outside its permitted window, terminal state)
  2xxx: Authorization (caller role, system gate, manager pause)
  3xxx: Arithmetic precondition (zero divisors, insufficient balances)
  4xxx: Oracle staleness
  5xxx: Construction parameters
"""


class MarketError(Exception):
    """Base market error."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


# --- 1xxx: Phase ---

class PhaseError(MarketError):
    def __init__(self, message: str, code: int = 1001) -> None:
        super().__init__(code, message)


class MarketDestroyedError(PhaseError):
    def __init__(self, address: str) -> None:
        super().__init__(f"Market destroyed: {address}", 1002)


# --- 2xxx: Authorization ---

class AuthorizationError(MarketError):
    def __init__(self, message: str, code: int = 2001) -> None:
        super().__init__(code, message)


# --- 3xxx: Arithmetic precondition ---

class ArithmeticPreconditionError(MarketError):
    def __init__(self, message: str, code: int = 3001) -> None:
        super().__init__(code, message)


class InsufficientFundsError(ArithmeticPreconditionError):
    def __init__(self, message: str = "Insufficient balance.") -> None:
        super().__init__(message, 3002)


class InsufficientCapitalError(ArithmeticPreconditionError):
    def __init__(self, message: str = "Insufficient capital") -> None:
        super().__init__(message, 3003)


class NothingToClaimError(ArithmeticPreconditionError):
    def __init__(self) -> None:
        super().__init__("Nothing to claim", 3004)


class NothingToExerciseError(ArithmeticPreconditionError):
    def __init__(self) -> None:
        super().__init__("Nothing to exercise", 3005)


# --- 4xxx: Oracle ---

class StalePriceError(MarketError):
    def __init__(self, key: str, observed_at: object, threshold: object) -> None:
        super().__init__(
            4001,
            f"Price is stale: {key} observed at {observed_at}, required at or after {threshold}",
        )


# --- 5xxx: Construction ---

class ConstructionError(MarketError):
    def __init__(self, message: str) -> None:
        super().__init__(5001, message)
