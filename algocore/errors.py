from __future__ import annotations


class InvalidInputError(ValueError):
    """Raised when a solver is called with inputs that violate its preconditions."""
