from __future__ import annotations


class FiscalEmissionError(RuntimeError):
    """Base error for the fiscal emission workflow.

    Every subclass carries a human-readable message suitable for the caller.
    """


class FiscalTenantMissing(FiscalEmissionError):
    """Raised when emitting without an active tenant context."""


class FiscalNotFoundError(FiscalEmissionError):
    """Document or fiscal configuration absent for the current tenant."""


class FiscalValidationError(FiscalEmissionError):
    """A precondition for emission is not met. No state was changed."""


class FiscalConfigurationError(FiscalEmissionError):
    """The tenant configuration cannot be used to reach the gateway."""
