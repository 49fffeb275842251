"""
Scoped crypto provider overrides.

An override substitutes the active provider of one record type for a
dynamic extent. Overrides nest with stack discipline and are always removed
when the extent ends, including when it ends with an exception.

The stacks live in a context variable, so every thread and every asyncio
task sees only the overrides it pushed itself.
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType

from .provider import CryptoProvider


_EMPTY: Mapping[type, tuple[CryptoProvider, ...]] = MappingProxyType({})

# record type -> override stack, innermost last
_override_stacks: ContextVar[Mapping[type, tuple[CryptoProvider, ...]]] = ContextVar(
    "secure_columns_provider_overrides", default=_EMPTY
)


def active_override(record_type: type) -> CryptoProvider | None:
    """
    Return the innermost override for a record type.

    Args:
        record_type: The record class to look up

    Returns:
        The provider on top of the stack, or None when no override is active
    """
    stack = _override_stacks.get().get(record_type, ())
    return stack[-1] if stack else None


def override_depth(record_type: type) -> int:
    """Number of overrides currently stacked for a record type."""
    return len(_override_stacks.get().get(record_type, ()))


@contextmanager
def provider_override(record_type: type, provider: CryptoProvider) -> Iterator[CryptoProvider]:
    """
    Push a provider override for the duration of a with block.

    Args:
        record_type: The record class whose provider is overridden
        provider: The provider to use inside the block

    Yields:
        The override provider
    """
    stacks = dict(_override_stacks.get())
    stacks[record_type] = stacks.get(record_type, ()) + (provider,)
    token = _override_stacks.set(MappingProxyType(stacks))
    try:
        yield provider
    finally:
        _override_stacks.reset(token)
