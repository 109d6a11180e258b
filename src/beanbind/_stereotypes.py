"""Decorators and annotation markers that describe beans.

Decorators only stamp metadata on the decorated class or function; nothing
is registered until an `ApplicationContext` scans it. Class metadata lives in
the class ``__dict__`` so subclasses of a component are not components
themselves.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Any, TypeVar, get_args, get_origin, overload

from ._definition import Lifetime, to_lifetime


if TYPE_CHECKING:
    from collections.abc import Callable

    C = TypeVar("C", bound=type)
    F = TypeVar("F", bound=Callable[..., Any])


COMPONENT_ATTR = "__beanbind_component__"
PRIMARY_ATTR = "__beanbind_primary__"
SCOPE_ATTR = "__beanbind_scope__"
LAZY_ATTR = "__beanbind_lazy__"
BEAN_ATTR = "__beanbind_bean__"
LIFECYCLE_ATTR = "__beanbind_lifecycle__"

POST_CONSTRUCT = "post_construct"
PRE_DESTROY = "pre_destroy"


@dataclass(frozen=True)
class ComponentInfo:
    name: str | None
    stereotype: str


@dataclass(frozen=True)
class BeanMethodInfo:
    name: str | None
    primary: bool
    lifetime: Lifetime
    init_method: str | None
    destroy_method: str | None


@dataclass(frozen=True)
class Qualifier:
    """Select a bean by name at an injection point.

    Example:
      def __init__(self, dao: Annotated[AlphaDao, Qualifier("alpha_hibernate")]): ...

    """

    name: str


@dataclass(frozen=True)
class Autowired:
    """Mark a class attribute for field injection.

    Example:
      class Report:
          dao: Annotated[AlphaDao, Autowired()]

    """

    required: bool = True


def _stereotype(kind: str) -> Any:
    def decorator(target: Any = None, /) -> Any:
        def mark(cls: C) -> C:
            if not inspect.isclass(cls):
                msg = f"@{kind} can only decorate classes, got {cls!r}"
                raise TypeError(msg)
            setattr(cls, COMPONENT_ATTR, ComponentInfo(name=name, stereotype=kind))
            return cls

        if inspect.isclass(target):
            name = None
            return mark(target)

        if target is not None and not isinstance(target, str):
            msg = f"@{kind} takes a bean name or decorates a class, got {target!r}"
            raise TypeError(msg)

        name = target
        return mark

    decorator.__name__ = kind
    decorator.__qualname__ = kind
    decorator.__doc__ = f"Mark a class as a {kind} bean, optionally giving it an explicit bean name."
    return decorator


component = _stereotype("component")
repository = _stereotype("repository")
service = _stereotype("service")
configuration = _stereotype("configuration")


def primary(cls: C) -> C:
    """Prefer this class when several beans satisfy the same type."""
    setattr(cls, PRIMARY_ATTR, True)
    return cls


def lazy(cls: C) -> C:
    """Skip eager creation of this singleton on context refresh."""
    setattr(cls, LAZY_ATTR, True)
    return cls


def scope(value: Lifetime | str) -> Callable[[C], C]:
    lifetime = to_lifetime(value)

    def mark(cls: C) -> C:
        setattr(cls, SCOPE_ATTR, lifetime)
        return cls

    return mark


@overload
def bean(func: F, /) -> F: ...


@overload
def bean(
    name: str | None = None,
    /,
    *,
    primary: bool = False,
    scope: Lifetime | str = Lifetime.SINGLETON,
    init_method: str | None = None,
    destroy_method: str | None = None,
) -> Callable[[F], F]: ...


def bean(
    target: Any = None,
    /,
    *,
    primary: bool = False,
    scope: Lifetime | str = Lifetime.SINGLETON,
    init_method: str | None = None,
    destroy_method: str | None = None,
) -> Any:
    """Declare a bean factory method on a `@configuration` class.

    The return annotation is the bean type and the method's parameters are
    autowired. The bean name defaults to the method name.
    """

    def mark(func: F, name: str | None) -> F:
        info = BeanMethodInfo(
            name=name,
            primary=primary,
            lifetime=to_lifetime(scope),
            init_method=init_method,
            destroy_method=destroy_method,
        )
        setattr(func, BEAN_ATTR, info)
        return func

    if callable(target):
        return mark(target, None)
    return lambda func: mark(func, target)


def post_construct(func: F) -> F:
    """Run after the bean is constructed and its dependencies are injected."""
    setattr(func, LIFECYCLE_ATTR, POST_CONSTRUCT)
    return func


def pre_destroy(func: F) -> F:
    """Run when the owning container closes. Never called for prototypes."""
    setattr(func, LIFECYCLE_ATTR, PRE_DESTROY)
    return func


def component_info(cls: type) -> ComponentInfo | None:
    return cls.__dict__.get(COMPONENT_ATTR)


def class_lifetime(cls: type) -> Lifetime:
    return cls.__dict__.get(SCOPE_ATTR, Lifetime.SINGLETON)


def is_primary(cls: type) -> bool:
    return bool(cls.__dict__.get(PRIMARY_ATTR, False))


def is_lazy(cls: type) -> bool:
    return bool(cls.__dict__.get(LAZY_ATTR, False))


def bean_methods(cls: type) -> list[tuple[str, BeanMethodInfo]]:
    return [
        (attr, info)
        for attr, value in cls.__dict__.items()
        if (info := getattr(value, BEAN_ATTR, None)) is not None
    ]


def lifecycle_methods(cls: type, kind: str) -> list[str]:
    """Names of hook methods of `kind`, base classes first.

    An override replaces the hook inherited under the same name.
    """
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        for attr, value in klass.__dict__.items():
            if attr in names:
                continue
            if getattr(value, LIFECYCLE_ATTR, None) == kind:
                names.append(attr)

    return [attr for attr in names if getattr(getattr(cls, attr, None), LIFECYCLE_ATTR, None) == kind]


def split_annotation(hint: Any) -> tuple[Any, Qualifier | None, Autowired | None]:
    """Unwrap `Annotated[T, ...]` into T and the injection markers it carries."""
    if get_origin(hint) is not Annotated:
        return hint, None, None

    base, *metadata = get_args(hint)
    qualifier = next((m for m in metadata if isinstance(m, Qualifier)), None)
    autowired = None
    for m in metadata:
        if m is Autowired:  # bare class used as marker
            autowired = Autowired()
        elif isinstance(m, Autowired):
            autowired = m
    return base, qualifier, autowired
