class AllocationEngineError(Exception):
    error_kind = "ALLOCATION_ENGINE_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.error_kind}: {self.message}"


class UnknownRiskProfileError(AllocationEngineError):
    error_kind = "UNKNOWN_RISK_PROFILE"


class InvalidBalanceError(AllocationEngineError):
    error_kind = "INVALID_BALANCE"


class InvalidApyError(AllocationEngineError):
    error_kind = "INVALID_APY"


class NoCandidatesError(AllocationEngineError):
    error_kind = "NO_CANDIDATES"
