"""Special values interpreted by the service inside update bodies."""

from __future__ import annotations

from typing import Any

VALUE_TYPE_KEY = "$$valueType"


class ValueTypes:
    """Factories for server-side value operations.

    Place the returned marker where a plain value would go in an ``update``
    body, e.g. ``db.update("c", "d", {"count": value_types.increment(1)})``.
    """

    @staticmethod
    def increment(amount: float) -> dict[str, Any]:
        """Add ``amount`` to the field's current numeric value.

        :raises TypeError: If ``amount`` is not an int or float.
        """
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise TypeError(f"increment() expects a number, got {type(amount).__name__}")
        return {VALUE_TYPE_KEY: "increment", "value": amount}


value_types = ValueTypes()
