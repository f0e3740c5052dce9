from abc import ABC, abstractmethod

from lazybind import Container, DeferredServiceProvider, Reference, ServiceProvider, ValueDefinition


class EngineInterface(ABC):
    @abstractmethod
    def name(self) -> str: ...


class EngineMarkOne(EngineInterface):
    def name(self) -> str:
        return "Mark One"


class EngineMarkTwo(EngineInterface):
    def name(self) -> str:
        return "Mark Two"


class Car:
    def __init__(self, engine: EngineInterface):
        self.engine = engine
        self.color = "black"


class ColorProvider(ServiceProvider):
    def __init__(self, color: str = "red"):
        self.color = color

    def register(self, container: Container) -> None:
        container.set("color", ValueDefinition(self.color))


class CarDeferredProvider(DeferredServiceProvider):
    def __init__(self):
        self.registrations = 0

    def provides(self):
        return [Car, EngineInterface]

    def register(self, container: Container) -> None:
        self.registrations += 1
        container.set_multiple(
            {
                Car: {"class": Car, "arguments": {"engine": Reference.to(EngineInterface)}},
                EngineInterface: EngineMarkOne,
            }
        )


class NotAProvider:
    pass
