"""Lazy dependency injection container.

This package provides a dependency injection container that maps identifiers to
definitions, builds each service on first request and caches it, detects
circular references while building, and supports service providers whose
registration is deferred until one of their services is requested.

Exports:
- `Container`: Registry of definitions and cache of built instances.
- `Reference`: Points at another identifier; usable as an alias or as a constructor argument.
- `ServiceProvider`: Registers a batch of definitions when added to a container.
- `DeferredServiceProvider`: Provider registered only when one of its identifiers is first requested.
- Errors: `ResolutionError` and its subclasses `CircularReferenceError`, `NotFoundError`,
  `InvalidConfigError`, `NotInstantiableError`.
"""

from ._container import Container
from ._definitions import (
    ClassDefinition,
    Definition,
    FactoryDefinition,
    Reference,
    ValueDefinition,
    normalize,
)
from ._errors import (
    CircularReferenceError,
    InvalidConfigError,
    NotFoundError,
    NotInstantiableError,
    ResolutionError,
)
from ._providers import DeferredServiceProvider, ServiceProvider


__all__ = [
    "CircularReferenceError",
    "ClassDefinition",
    "Container",
    "DeferredServiceProvider",
    "Definition",
    "FactoryDefinition",
    "InvalidConfigError",
    "NotFoundError",
    "NotInstantiableError",
    "Reference",
    "ResolutionError",
    "ServiceProvider",
    "ValueDefinition",
    "normalize",
]
