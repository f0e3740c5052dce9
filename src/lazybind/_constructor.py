from __future__ import annotations

import inspect
import logging
import typing
from typing import TYPE_CHECKING, Any, get_type_hints

from ._errors import InvalidConfigError, NotFoundError, NotInstantiableError


if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._container import Container


logger = logging.getLogger(__name__)


class Constructor:
    """Instantiates a class, filling constructor parameters from the container."""

    def __init__(self, container: Container) -> None:
        self._container = container

    def construct(self, cls: type, arguments: Mapping[str, Any] | None = None) -> object:
        if inspect.isabstract(cls) or _is_protocol(cls):
            msg = f"{cls.__qualname__} is abstract and cannot be instantiated"
            raise NotInstantiableError(msg)

        arguments = dict(arguments or {})
        arguments.pop("self", None)  # never allow passing 'self'

        if cls.__init__ is object.__init__ and cls.__new__ is object.__new__ and not arguments:
            return cls()

        try:
            sig = inspect.signature(cls)
        except ValueError as e:
            msg = f"Cannot inspect the constructor of {cls.__qualname__}: {e}"
            raise NotInstantiableError(msg) from e
        params = sig.parameters

        kw_arguments, posonly_arguments = self._split_positional_only(arguments, params)

        bound = self._bind_explicit(sig, kw_arguments, cls)

        for name, value in posonly_arguments.items():
            bound.arguments[name] = value

        self._fill_missing_arguments(cls, sig, bound)

        args, kwargs = self._materialize_call(sig, bound)
        return cls(*args, **kwargs)

    def resolve_param(
        self,
        cls: type,
        name: str,
        p: inspect.Parameter,
        hints: dict[str, Any],
    ) -> Any:
        """Resolve a constructor parameter that was not given explicitly.

        Resolution precedence:
        1. type-based lookup
        2. name-based registration
        3. default
        4. error.
        """
        failure: Exception | None = None

        # 1) type-based
        ann = hints.get(name, inspect.Signature.empty)
        if (
            ann is not inspect.Signature.empty
            and inspect.isclass(ann)
            and getattr(ann, "__module__", "") != "builtins"
        ):
            try:
                return self._container.get(ann)
            except (NotFoundError, NotInstantiableError) as e:
                failure = e

        # 2) name-based
        if self._container.has(name):
            return self._container.get(name)

        # 3) default
        if p.default is not inspect.Parameter.empty:
            return p.default

        # 4) error
        ann_repr = getattr(ann, "__name__", repr(ann)) if ann is not inspect.Signature.empty else "no-annotation"
        msg = (
            f"Cannot satisfy constructor parameter '{name}' for {cls.__qualname__}. "
            f"No argument/registration/default found (annotation: {ann_repr})."
        )
        raise NotInstantiableError(msg) from failure

    def _materialize_call(
        self, sig: inspect.Signature, bound: inspect.BoundArguments
    ) -> tuple[list[Any], dict[str, Any]]:
        params = sig.parameters
        args, kwargs = [], {}

        # positional-only
        for name, p in params.items():
            if p.kind is p.POSITIONAL_ONLY:
                args.append(bound.arguments[name])

        # *args
        for name, p in params.items():
            if p.kind is p.VAR_POSITIONAL:
                args.extend(tuple(bound.arguments.get(name, ())))
                break

        # keywords
        for name, p in params.items():
            if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY):
                kwargs[name] = bound.arguments[name]

        # **kwargs
        for name, p in params.items():
            if p.kind is p.VAR_KEYWORD:
                kwargs.update(bound.arguments.get(name, {}))
                break

        return args, kwargs

    def _fill_missing_arguments(self, cls: type, sig: inspect.Signature, bound: inspect.BoundArguments) -> None:
        hints = _get_init_type_hints(cls)

        for name, p in sig.parameters.items():
            if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
                continue

            if name not in bound.arguments:
                bound.arguments[name] = self.resolve_param(cls, name, p, hints)

    def _split_positional_only(
        self,
        arguments: dict[str, Any],
        params: Mapping[str, inspect.Parameter],
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        pos_only = {name for name, p in params.items() if p.kind is inspect.Parameter.POSITIONAL_ONLY}

        return (
            {k: v for k, v in arguments.items() if k not in pos_only},
            {k: v for k, v in arguments.items() if k in pos_only},
        )

    def _bind_explicit(self, sig: inspect.Signature, kw: dict[str, Any], cls: type) -> inspect.BoundArguments:
        try:
            return sig.bind_partial(**kw)
        except TypeError as e:
            msg = f"Arguments don't match {cls.__qualname__} signature: {e}"
            raise InvalidConfigError(msg) from e


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and bool(tp.__dict__.get("_is_protocol", False))


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints
