"""Exception hierarchy.

Decode problems are *not* exceptions: the decoder returns `DecodeFailure`
values so one bad log never stops a stream. Exceptions are reserved for:

- `SubscriptionError`: the transport could not subscribe or the link broke
  (fatal to the affected stream).
- `SchemaError`: a malformed event schema / ABI (raised at load time, before
  any subscription starts).
- `FixedPointError`: a value or scale outside the formatter's safe range
  (recoverable, only the affected record's rendering fails).
"""

from __future__ import annotations


class DexwatchError(Exception):
    """Base class for all dexwatch errors."""


class SubscriptionError(DexwatchError, ConnectionError):
    """Subscription setup failed or the underlying link was lost."""


class SchemaError(DexwatchError, ValueError):
    """An event schema or ABI document is malformed or unsupported."""


class FixedPointError(DexwatchError, ArithmeticError):
    """A fixed-point value cannot be rendered within the supported range."""
