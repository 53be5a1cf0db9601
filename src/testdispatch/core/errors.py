"""Exceptions raised while dispatching a test run."""


class DispatchError(Exception):
    """Base class for dispatch failures."""

    pass


class ResolutionError(DispatchError):
    """Raised when a requested case or group cannot be constructed."""

    pass


class FilterApplyError(DispatchError):
    """Raised when a filter cannot transform the test set."""

    def __init__(self, name: str, message: str):
        super().__init__(f"Filter '{name}' failed to apply: {message}")
        self.name = name


class FilterAnalyzeError(DispatchError):
    """Reported in place of an analysis when a filter's analyze step fails."""

    def __init__(self, name: str, message: str):
        super().__init__(f"Filter '{name}' failed to analyze: {message}")
        self.name = name

    def to_dict(self) -> dict:
        return {"error": str(self)}
