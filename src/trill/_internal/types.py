"""Shared type aliases used across trill modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: user-defined function with variable signature
Handler: TypeAlias = Callable[..., Any]

# Before/after filter: same calling convention as a handler
Filter: TypeAlias = Callable[..., Any]

# Error handler: receives (ctx, error?) and returns a response value
ErrorHandler: TypeAlias = Callable[..., Any]

# Route condition: receives the request context, returns truthiness
Condition: TypeAlias = Callable[..., bool]
