"""
Ready-made signature predicates for the grind loop.

A predicate receives the base58 signature of a candidate transaction and
returns True to have it submitted.
"""
from typing import Callable, Iterable

EVEN = "even"
ODD = "odd"


def char_parity(char: str) -> str:
    """
    Classify a base58 character as even or odd.

    Digits use their value; letters use their 1-based alphabet position
    (``a`` is odd, ``b`` is even), ignoring case.

    Raises:
        ValueError: If the character is not alphanumeric
    """
    c = char.lower()
    if c.isdigit():
        return EVEN if int(c) % 2 == 0 else ODD
    if "a" <= c <= "z":
        return EVEN if (ord(c) - ord("a") + 1) % 2 == 0 else ODD
    raise ValueError(f"Cannot classify character {char!r}")


def last_char_parity(parity: str = ODD) -> Callable[[str], bool]:
    """
    Accept signatures whose last character has the given parity.

    Args:
        parity: ``"odd"`` or ``"even"``
    """
    if parity not in (EVEN, ODD):
        raise ValueError(f"parity must be '{EVEN}' or '{ODD}', got {parity!r}")

    def predicate(signature: str) -> bool:
        return bool(signature) and char_parity(signature[-1]) == parity

    return predicate


def ends_with(chars: Iterable[str], case_sensitive: bool = False) -> Callable[[str], bool]:
    """Accept signatures whose last character is one of ``chars``."""
    wanted = set(chars) if case_sensitive else {c.lower() for c in chars}

    def predicate(signature: str) -> bool:
        if not signature:
            return False
        last = signature[-1] if case_sensitive else signature[-1].lower()
        return last in wanted

    return predicate
