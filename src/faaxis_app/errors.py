from __future__ import annotations

from typing import Dict, Optional


class CalculatorError(Exception):
    pass


class ProfileValidationError(CalculatorError, ValueError):
    """Raw advisor form values could not be turned into an AdvisorInfo."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Invalid advisor profile: {fields}")

    @property
    def fields(self) -> list[str]:
        return sorted(self.errors)


class InvalidAdvisorInputError(CalculatorError, ValueError):
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class RegistryUnavailableError(CalculatorError):
    def __init__(self, message: str = "Firm deal registry is unavailable", cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)
