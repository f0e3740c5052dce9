from __future__ import annotations

import importlib
import inspect
import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._definitions import ClassDefinition, identifier_of, normalize
from ._errors import CircularReferenceError, InvalidConfigError, NotFoundError
from ._providers import DeferredServiceProvider, ServiceProvider


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from ._definitions import Definition, Reference, Token

    T = TypeVar("T")


class Container:
    """Lazy DI container.

    - definitions keyed by identifier (string, class or Reference)
    - every service is a singleton: built on first `get`, then cached
    - circular references are detected while building
    - providers register batches of definitions; deferred providers only
      when one of their identifiers is first requested.
    """

    def __init__(
        self,
        definitions: Mapping[Token, Any] | None = None,
        providers: Iterable[Any] | None = None,
    ) -> None:
        self._definitions: dict[str, Definition] = {}
        self._instances: dict[str, object | None] = {}
        # ids being built on the current call chain, in entry order
        self._building: dict[str, None] = {}
        self._deferred_providers: list[DeferredServiceProvider] = []
        self._classes: dict[str, type] = {}
        self._lock = threading.RLock()

        self.set_multiple(definitions or {})
        for provider in providers or ():
            self.add_provider(provider)

    def get_id(self, token: Token) -> str:
        """Return the canonical string identifier for `token`."""
        id = identifier_of(token)  # noqa: A001
        if inspect.isclass(token):
            self._classes.setdefault(id, token)
        return id

    @overload
    def get(self, id: type[T], parameters: Mapping[str, Any] | None = ...) -> T: ...

    @overload
    def get(self, id: str | Reference, parameters: Mapping[str, Any] | None = ...) -> Any: ...

    def get(self, id: Token, parameters: Mapping[str, Any] | None = None) -> Any:  # noqa: A002
        """Return the instance for `id`, building it on first request.

        The same instance is returned on every later call. `parameters` only
        take effect on the call that builds the instance.

        Example:
          container.get("mailer")
          container.get(Mailer, {"host": "localhost"})

        """
        with self._lock:
            id = self.get_id(id)  # noqa: A001
            if id not in self._instances:
                self._instances[id] = self.build(id, parameters)

            return self._instances[id]

    def build(self, id: Token, parameters: Mapping[str, Any] | None = None) -> Any:  # noqa: A002
        """Build a new instance for `id` without consulting or filling the instance cache."""
        with self._lock:
            id = self.get_id(id)  # noqa: A001
            with self._building_guard(id):
                logger.debug("Building %s", id)
                self._register_deferred_providers_for(id)
                return self._build_internal(id, dict(parameters or {}))

    @contextmanager
    def _building_guard(self, id: str) -> Iterator[None]:  # noqa: A002
        if id in self._building:
            raise CircularReferenceError(id, (*self._building, id))

        self._building[id] = None
        try:
            yield
        finally:
            del self._building[id]

    def _build_internal(self, id: str, parameters: dict[str, Any]) -> object:  # noqa: A002
        definition = self._definitions.get(id)
        if definition is None:
            return self._build_primitive(id, parameters)

        return definition.resolve(self, parameters)

    def _build_primitive(self, id: str, parameters: dict[str, Any]) -> object:  # noqa: A002
        cls = self.find_class(id)
        if cls is None:
            raise NotFoundError(id)

        logger.debug("No definition for %s, building %s directly", id, cls.__qualname__)
        return ClassDefinition(cls).resolve(self, parameters)

    def _register_deferred_providers_for(self, id: str) -> None:  # noqa: A002
        # Iterate over a snapshot: registering a provider may activate others re-entrantly.
        for provider in list(self._deferred_providers):
            if provider not in self._deferred_providers:
                continue
            if provider.has_definition_for(id):
                # removed first so it is never registered twice
                self._deferred_providers.remove(provider)
                logger.info("Registering deferred provider %s for %s", type(provider).__name__, id)
                provider.register(self)

    def find_class(self, id: str) -> type | None:  # noqa: A002
        """Return the class named by `id`: a class seen by this container or an importable dotted path."""
        cls = self._classes.get(id)
        if cls is not None:
            return cls

        parts = id.split(".")
        if len(parts) < 2 or not all(parts):  # noqa: PLR2004
            return None

        for split in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:split])
            try:
                found: Any = importlib.import_module(module_name)
            except ModuleNotFoundError as e:
                # only a missing prefix of `id` means "try a shorter module path"
                if e.name is None or not f"{module_name}.".startswith(f"{e.name}."):
                    raise
                continue

            for name in parts[split:]:
                found = getattr(found, name, None)
            return found if inspect.isclass(found) else None

        return None

    def set(self, id: Token, definition: Any) -> None:  # noqa: A002
        """Register a definition for `id`, replacing any previous one and its cached instance.

        Example:
          container.set("engine", EngineMarkOne)
          container.set("car", {"class": Car, "arguments": {"engine": Reference("engine")}})
          container.set("clock", lambda c: SystemClock())

        """
        with self._lock:
            id = self.get_id(id)  # noqa: A001
            normalized = normalize(definition, id)
            if id in self._definitions:
                logger.debug("Overwriting definition for %s", id)
            self._instances.pop(id, None)
            self._definitions[id] = normalized

    def set_multiple(self, config: Mapping[Token, Any]) -> None:
        """Register definitions indexed by their ids, in order. Stops at the first invalid one."""
        with self._lock:
            for id, definition in config.items():  # noqa: A001
                self.set(id, definition)

    def has(self, id: Token) -> bool:  # noqa: A002
        """Whether a definition is registered for `id`.

        Instances and deferred providers are not considered, so this can be
        False for an id that `get` would still resolve.
        """
        with self._lock:
            return self.get_id(id) in self._definitions

    def has_instance(self, id: Token) -> bool:  # noqa: A002
        with self._lock:
            return self.get_id(id) in self._instances

    def get_instances(self) -> dict[str, object | None]:
        with self._lock:
            return dict(self._instances)

    def add_provider(self, provider_definition: Any) -> None:
        """Add a service provider. Deferred providers wait until one of their ids is requested.

        Example:
          container.add_provider(CarProvider)
          container.add_provider("app.providers.CarProvider")
          container.add_provider({"class": CarProvider, "arguments": {"color": "red"}})

        """
        with self._lock:
            provider = self._build_provider(provider_definition)

            if isinstance(provider, DeferredServiceProvider):
                self._deferred_providers.append(provider)
            else:
                provider.register(self)

    def _build_provider(self, provider_definition: Any) -> ServiceProvider:
        # A string names the provider class; it is not an alias to a cached service.
        if isinstance(provider_definition, str):
            definition: Definition = ClassDefinition(provider_definition)
        else:
            definition = normalize(provider_definition)

        provider = definition.resolve(self, {})
        if not isinstance(provider, ServiceProvider):
            msg = f"Service provider should be an instance of {ServiceProvider.__name__}, got {type(provider).__name__}"
            raise InvalidConfigError(msg)

        return provider
