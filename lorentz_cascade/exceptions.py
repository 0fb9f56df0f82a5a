"""
Exception classes for lorentz_cascade.

This module defines the exception hierarchy raised by the attention engine.
Runtime numerical edge cases (near-zero norms, coincident points, empty
hierarchy buckets) are handled with documented fallbacks and never raise;
the classes below cover misconfiguration, invalid call arguments and the
benchmark performance contract.
"""

from typing import Optional


class LorentzCascadeError(Exception):
    """Base exception for all lorentz_cascade errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(LorentzCascadeError):
    """Raised when an engine is constructed with an invalid configuration."""
    pass


class InvalidArgumentError(LorentzCascadeError, ValueError):
    """Raised when an operation receives an argument it cannot work with."""
    pass


class BenchmarkError(LorentzCascadeError):
    """Raised when a benchmark run cannot be completed."""
    pass


class PerformanceContractError(BenchmarkError):
    """Raised when the closed-form path fails to beat the iterative baseline."""

    def __init__(self, operation: str, speedup: float, min_speedup: float):
        self.operation = operation
        self.speedup = speedup
        self.min_speedup = min_speedup
        message = (
            f"Closed-form {operation} is only {speedup:.2f}x faster than the "
            f"baseline, expected at least {min_speedup:.2f}x"
        )
        super().__init__(message, {"operation": operation})


def handle_error(error: Exception, context: str = "") -> LorentzCascadeError:
    """
    Convert generic exceptions to lorentz_cascade exceptions.

    Args:
        error: The original exception
        context: Additional context about where the error occurred

    Returns:
        An appropriate LorentzCascadeError subclass
    """
    if isinstance(error, LorentzCascadeError):
        return error

    error_type = type(error).__name__
    message = f"{context}: {error_type}: {str(error)}" if context else f"{error_type}: {str(error)}"

    if isinstance(error, ValueError):
        return InvalidArgumentError(message)
    elif isinstance(error, (ImportError, TypeError)):
        return ConfigurationError(message)
    elif isinstance(error, (FloatingPointError, ArithmeticError)):
        return BenchmarkError(message)
    else:
        return LorentzCascadeError(message)


class ErrorHandler:
    """Context manager for handling errors in a consistent way."""

    def __init__(self, context: str, reraise: bool = True):
        self.context = context
        self.reraise = reraise
        self.error: Optional[LorentzCascadeError] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.error = handle_error(exc_val, self.context)
            if self.reraise:
                if self.error is exc_val:
                    return False
                raise self.error from exc_val
            return True
        return False

    def has_error(self) -> bool:
        """Check if an error occurred."""
        return self.error is not None
