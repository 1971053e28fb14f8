#!/usr/bin/env python3
"""
Money Primitive Type

Immutable currency value wrapper that uses integer yen internally.
Prevents floating-point errors and provides type-safe currency operations.
"""

from dataclasses import dataclass

from .currency import format_yen, parse_yen


@dataclass(frozen=True)
class Money:
    """
    Immutable money value in yen.

    Supports both positive (credits, purchases) and negative (debits, sales)
    amounts. Uses integer arithmetic throughout.

    Examples:
        >>> purchase = Money.from_yen(33333)
        >>> str(purchase)
        '¥33,333'

        >>> sale = Money.from_string("12,000円").negate()
        >>> sale.to_yen()
        -12000

        >>> sale.abs()
        Money(yen=12000)
    """

    yen: int

    @classmethod
    def from_yen(cls, yen: int) -> "Money":
        """Create Money from integer yen."""
        return cls(yen=yen)

    @classmethod
    def from_string(cls, amount: str) -> "Money":
        """
        Parse from a string like '¥12,345' or '12,345円'.

        Raises:
            ValueError: If the string contains no amount
        """
        parsed = parse_yen(amount)
        if parsed is None:
            raise ValueError(f"No yen amount found in {amount!r}")
        return cls(yen=parsed)

    def to_yen(self) -> int:
        """Get value in yen."""
        return self.yen

    def abs(self) -> "Money":
        """Return absolute value of Money."""
        return Money(yen=abs(self.yen))

    def negate(self) -> "Money":
        """Return Money with the opposite sign."""
        return Money(yen=-self.yen)

    def is_positive(self) -> bool:
        """True when the amount is greater than zero."""
        return self.yen > 0

    def __add__(self, other: "Money") -> "Money":
        """Add two Money objects."""
        return Money(yen=self.yen + other.yen)

    def __sub__(self, other: "Money") -> "Money":
        """Subtract two Money objects."""
        return Money(yen=self.yen - other.yen)

    def __mul__(self, scalar: int) -> "Money":
        """Multiply Money by integer scalar."""
        return Money(yen=self.yen * scalar)

    def __eq__(self, other: object) -> bool:
        """Check equality."""
        if not isinstance(other, Money):
            return NotImplemented
        return self.yen == other.yen

    def __lt__(self, other: "Money") -> bool:
        """Less than comparison."""
        return self.yen < other.yen

    def __le__(self, other: "Money") -> bool:
        """Less than or equal comparison."""
        return self.yen <= other.yen

    def __gt__(self, other: "Money") -> bool:
        """Greater than comparison."""
        return self.yen > other.yen

    def __ge__(self, other: "Money") -> bool:
        """Greater than or equal comparison."""
        return self.yen >= other.yen

    def __str__(self) -> str:
        """Format as yen string."""
        return format_yen(self.yen)

    def __repr__(self) -> str:
        """Repr format."""
        return f"Money(yen={self.yen})"
