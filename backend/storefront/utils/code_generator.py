"""
Product code generator — opaque external codes for imported products.

The reconciler takes any object with a next() method, so tests can
inject a deterministic sequence.
Version: 1.0.0
"""

import secrets
import time
from typing import Callable, Iterable, Iterator, Protocol

from storefront.core.constants.product_import import PRODUCT_CODE_PREFIX

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class CodeGenerator(Protocol):
    def next(self) -> str:
        ...


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


class TimestampCodeGenerator:
    """
    SLI-XXXX-YYYY codes.

    XXXX is the tail of the base36 epoch-millisecond clock, YYYY four
    random base36 characters.
    """

    def __init__(
        self,
        prefix: str = PRODUCT_CODE_PREFIX,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._prefix = prefix
        self._clock = clock

    def next(self) -> str:
        stamp = to_base36(int(self._clock() * 1000))[-4:].upper()
        suffix = "".join(secrets.choice(_BASE36) for _ in range(4)).upper()
        return f"{self._prefix}-{stamp}-{suffix}"


class SequenceCodeGenerator:
    """Yields codes from a fixed iterable (deterministic)."""

    def __init__(self, codes: Iterable[str]) -> None:
        self._codes: Iterator[str] = iter(codes)

    def next(self) -> str:
        return next(self._codes)
