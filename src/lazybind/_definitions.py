"""Definitions: recipes the container uses to produce a service.

Every registered definition exposes a single capability,
``resolve(container, parameters)``. Raw configuration values are turned into
one of the variants below by :func:`normalize`.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ._constructor import Constructor
from ._errors import InvalidConfigError, NotFoundError


if TYPE_CHECKING:
    from ._container import Container

    Token = str | type | "Reference"


class Definition(ABC):
    """Base class for recipes; subclass it to register custom definitions."""

    @abstractmethod
    def resolve(self, container: Container, parameters: Mapping[str, Any]) -> object: ...


@dataclass(frozen=True)
class Reference(Definition):
    """Points at another identifier; resolving it is ``container.get(id)``.

    Used both as an alias definition and as a constructor argument value:
    ``{"class": Car, "arguments": {"engine": Reference("engine")}}``.
    """

    id: str

    @classmethod
    def to(cls, token: Token) -> Reference:
        return cls(identifier_of(token))

    def resolve(self, container: Container, parameters: Mapping[str, Any]) -> object:
        return container.get(self.id, parameters)


@dataclass(frozen=True)
class ClassDefinition(Definition):
    """Build ``class_`` through the container's constructor.

    ``class_`` may be a dotted path; it is located when the definition is resolved.
    """

    class_: type | str
    arguments: Mapping[str, Any] = field(default_factory=dict)
    properties: Mapping[str, Any] = field(default_factory=dict)

    def resolve(self, container: Container, parameters: Mapping[str, Any]) -> object:
        cls = self.class_
        if isinstance(cls, str):
            found = container.find_class(cls)
            if found is None:
                raise NotFoundError(cls)
            cls = found

        arguments = {name: _resolve_value(container, value) for name, value in self.arguments.items()}
        arguments.update(parameters)
        instance = Constructor(container).construct(cls, arguments)

        for name, value in self.properties.items():
            setattr(instance, name, _resolve_value(container, value))

        return instance


@dataclass(frozen=True)
class FactoryDefinition(Definition):
    factory: Any

    def resolve(self, container: Container, parameters: Mapping[str, Any]) -> object:
        return self.factory(container, **parameters)


@dataclass(frozen=True)
class ValueDefinition(Definition):
    value: object

    def resolve(self, container: Container, parameters: Mapping[str, Any]) -> object:
        return self.value


_STRUCTURED_KEYS = frozenset({"class", "arguments", "properties"})


def normalize(raw: object, id: str | None = None) -> Definition:  # noqa: A002, C901
    """Turn a raw configuration value into a definition.

    - ``Definition`` instance: used as is
    - ``Reference`` or plain string: alias to another identifier
    - class: built through the constructor
    - mapping: ``{"class": ..., "arguments": {...}, "properties": {...}}``
    - other callables: factory called as ``factory(container, **parameters)``
    - any other object: returned as is
    """
    if isinstance(raw, Reference):
        return raw

    if inspect.isclass(raw):
        return ClassDefinition(raw)

    if isinstance(raw, Definition):
        return raw

    if isinstance(raw, str):
        if not raw:
            msg = f"Empty alias given as definition for {id!r}"
            raise InvalidConfigError(msg)
        return Reference(raw)

    if isinstance(raw, Mapping):
        return _normalize_structured(raw, id)

    if callable(raw):
        return FactoryDefinition(raw)

    if raw is None or isinstance(raw, (list, tuple, set, frozenset)):
        msg = f"Invalid definition for {id!r}: {raw!r}"
        raise InvalidConfigError(msg)

    return ValueDefinition(raw)


def _normalize_structured(raw: Mapping[str, Any], id: str | None) -> ClassDefinition:  # noqa: A002
    unknown = set(raw) - _STRUCTURED_KEYS
    if unknown:
        msg = f"Unknown keys in definition for {id!r}: {', '.join(sorted(map(str, unknown)))}"
        raise InvalidConfigError(msg)

    cls = raw.get("class", id)
    if cls is None:
        msg = "Structured definition needs a 'class' key when no id is given"
        raise InvalidConfigError(msg)
    if not (inspect.isclass(cls) or (isinstance(cls, str) and cls)):
        msg = f"'class' for {id!r} must be a class or a dotted path, got {cls!r}"
        raise InvalidConfigError(msg)

    arguments = raw.get("arguments", {})
    properties = raw.get("properties", {})
    for key, value in (("arguments", arguments), ("properties", properties)):
        if not isinstance(value, Mapping):
            msg = f"'{key}' for {id!r} must be a mapping, got {type(value).__name__}"
            raise InvalidConfigError(msg)

    return ClassDefinition(cls, arguments=dict(arguments), properties=dict(properties))


def identifier_of(token: Token) -> str:
    if isinstance(token, str):
        return token
    if isinstance(token, Reference):
        return token.id
    if inspect.isclass(token):
        return f"{token.__module__}.{token.__qualname__}"
    msg = f"Identifier must be a string, a class or a Reference, got {token!r}"
    raise InvalidConfigError(msg)


def _resolve_value(container: Container, value: object) -> object:
    if isinstance(value, Reference):
        return container.get(value.id)
    return value
