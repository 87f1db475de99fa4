"""Contract checks shared across the package.

Violations of the listener and cache contracts are programming errors,
not operational failures, so they surface as ``AssertionError``. Unlike
the ``assert`` statement these checks stay active under ``python -O``.
"""

from __future__ import annotations


def require(condition: bool, message: str = "assertion failed") -> None:
    """Raise AssertionError if condition is false.

    Args:
        condition: The contract that must hold.
        message: Description of the violated contract.

    Raises:
        AssertionError: If condition is false.
    """
    if not condition:
        raise AssertionError(message)
