from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, get_type_hints


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    T = TypeVar("T")


logger = logging.getLogger(__name__)


class ParamResolver(Protocol):
    def resolve_param(
        self,
        owner: str,
        name: str,
        p: inspect.Parameter,
        bound: inspect.BoundArguments,
        hints: dict[str, Any],
    ) -> Any: ...


class Constructor:
    """Call a class or function, filling parameters the caller did not supply."""

    def __init__(self, resolver: ParamResolver) -> None:
        self._resolver = resolver

    def construct(self, cls: type[T], **overrides: Any) -> T:
        try:
            inspect.signature(cls)
        except ValueError:
            # no introspectable signature, e.g. some builtin subclasses
            return cls(**overrides)

        return self.call(cls, _init_type_hints(cls), cls.__name__, **overrides)

    def invoke(self, func: Callable[..., T], **overrides: Any) -> T:
        return self.call(func, _callable_type_hints(func), getattr(func, "__qualname__", repr(func)), **overrides)

    def call(self, target: Callable[..., T], hints: dict[str, Any], owner: str, **overrides: Any) -> T:
        sig = inspect.signature(target)
        params = sig.parameters

        overrides.pop("self", None)  # never allow passing 'self'

        kw_overrides, posonly_overrides = self._split_positional_only(overrides, params)

        bound = self._bind_explicit(sig, kw_overrides, owner)

        for name, value in posonly_overrides.items():
            bound.arguments[name] = value

        self._fill_missing_arguments(owner, sig, bound, hints)

        args, kwargs = self._materialize_call(sig, bound)
        return target(*args, **kwargs)

    def _materialize_call(
        self, sig: inspect.Signature, bound: inspect.BoundArguments
    ) -> tuple[list[Any], dict[str, Any]]:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}

        for name, p in sig.parameters.items():
            if p.kind is p.POSITIONAL_ONLY:
                args.append(bound.arguments[name])
            elif p.kind is p.VAR_POSITIONAL:
                args.extend(tuple(bound.arguments.get(name, ())))
            elif p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY):
                kwargs[name] = bound.arguments[name]
            elif p.kind is p.VAR_KEYWORD:
                kwargs.update(bound.arguments.get(name, {}))

        return args, kwargs

    def _fill_missing_arguments(
        self,
        owner: str,
        sig: inspect.Signature,
        bound: inspect.BoundArguments,
        hints: dict[str, Any],
    ) -> None:
        for name, p in sig.parameters.items():
            if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
                continue

            if name not in bound.arguments:
                value = self._resolver.resolve_param(owner, name, p, bound, hints)
                if value is not inspect.Signature.empty:
                    bound.arguments[name] = value

    def _split_positional_only(
        self,
        overrides: dict[str, Any],
        params: Mapping[str, inspect.Parameter],
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        pos_only = {name for name, p in params.items() if p.kind is inspect.Parameter.POSITIONAL_ONLY}

        return (
            {k: v for k, v in overrides.items() if k not in pos_only},
            {k: v for k, v in overrides.items() if k in pos_only},
        )

    def _bind_explicit(self, sig: inspect.Signature, kw: dict[str, Any], owner: str) -> inspect.BoundArguments:
        try:
            return sig.bind_partial(**kw)
        except TypeError as e:
            msg = f"Overrides don't match {owner} signature: {e}"
            raise TypeError(msg) from e


def _init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        return get_type_hints(init, include_extras=True)
    except TypeError:
        return {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        return {}


def _callable_type_hints(func: Callable[..., Any]) -> dict[str, Any]:
    try:
        return get_type_hints(func, include_extras=True)
    except TypeError:
        return {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %r type hints", exc.name, func)
        return {}
