class NotFound(ValueError):
    """A budget, category, template or transaction is absent or not owned by the caller."""


class InvalidInput(ValueError):
    """Input that violates a budget invariant (duplicate names, inverted ranges, ...)."""
