from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ._definitions import identifier_of


if TYPE_CHECKING:
    from collections.abc import Iterable

    from ._container import Container
    from ._definitions import Token


class ServiceProvider(ABC):
    """Registers a batch of definitions in a container.

    Example:
      class StorageProvider(ServiceProvider):
          def register(self, container):
              container.set_multiple({"db": Database, "cache": Cache})

    """

    @abstractmethod
    def register(self, container: Container) -> None: ...


class DeferredServiceProvider(ServiceProvider):
    """A provider registered only when one of the identifiers it provides is first requested."""

    @abstractmethod
    def provides(self) -> Iterable[Token]:
        """Identifiers (strings or classes) this provider registers."""

    def has_definition_for(self, id: str) -> bool:  # noqa: A002
        return id in {identifier_of(token) for token in self.provides()}
