"""Output directory ownership for a single run."""

from webencode.output.transaction import OutputTransaction

__all__ = ["OutputTransaction"]
