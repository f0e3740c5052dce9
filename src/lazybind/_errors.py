from __future__ import annotations


class ResolutionError(RuntimeError):
    pass


class CircularReferenceError(ResolutionError):
    """Raised when a build re-enters an identifier that is still being built."""

    def __init__(self, id: str, chain: tuple[str, ...]) -> None:  # noqa: A002
        self.id = id
        self.chain = chain
        super().__init__(f"Circular reference to {id!r} detected while building: {' -> '.join(chain)}")


class NotFoundError(ResolutionError, LookupError):
    def __init__(self, id: str) -> None:  # noqa: A002
        self.id = id
        super().__init__(f"No definition or class found for {id!r}")


class InvalidConfigError(ResolutionError, ValueError):
    pass


class NotInstantiableError(ResolutionError, TypeError):
    pass
