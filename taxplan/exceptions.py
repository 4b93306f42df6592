"""Custom exceptions for taxplan."""


class TaxPlanError(Exception):
    """Base exception for taxplan errors."""


class RulesParseError(TaxPlanError):
    """Raised when a strategy rule table cannot be loaded.

    Every offending row is collected into ``issues`` so a rule file can be
    fixed in one pass.
    """

    def __init__(self, message: str, issues: list[str] | None = None):
        self.message = message
        self.issues = list(issues or [])
        detail = f"{message} ({len(self.issues)} issue(s))" if self.issues else message
        super().__init__(detail)


class InvalidIntakeError(TaxPlanError):
    """Raised when an intake document cannot be read or validated."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid intake on '{field}': {message}")
