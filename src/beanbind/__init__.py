"""Minimal dependency injection library with a managed bean lifecycle.

Beans are registered by type, by name, or discovered by scanning decorated
classes. When several beans satisfy a type, a `primary` bean or a `Qualifier`
picks one. Singletons are shared and destroyed when the container closes;
prototypes are created per lookup.

Exports:
- `Container`: DI container supporting type/name/factory/instance registration and resolution.
- `Scope`: Scoped container that resolves within itself first, then falls back
  to a parent container. Useful for per-request or per-test lifetimes.
- `ApplicationContext`: scans modules for components and manages refresh/close.
- `Lifetime`: singleton or prototype.
- Decorators: `component`, `repository`, `service`, `configuration`, `bean`,
  `primary`, `scope`, `lazy`, `post_construct`, `pre_destroy`.
- Injection markers: `Qualifier`, `Autowired` (used inside `typing.Annotated`).
"""

from ._container import Container, Scope
from ._context import ApplicationContext, ApplicationContextAware
from ._definition import BeanDefinition, Lifetime
from ._errors import (
    BeanNotOfRequiredTypeError,
    CircularDependencyError,
    ContainerClosedError,
    NoSuchBeanError,
    NoUniqueBeanError,
    ResolutionError,
)
from ._stereotypes import (
    Autowired,
    Qualifier,
    bean,
    component,
    configuration,
    lazy,
    post_construct,
    pre_destroy,
    primary,
    repository,
    scope,
    service,
)


__all__ = [
    "ApplicationContext",
    "ApplicationContextAware",
    "Autowired",
    "BeanDefinition",
    "BeanNotOfRequiredTypeError",
    "CircularDependencyError",
    "Container",
    "ContainerClosedError",
    "Lifetime",
    "NoSuchBeanError",
    "NoUniqueBeanError",
    "Qualifier",
    "ResolutionError",
    "Scope",
    "bean",
    "component",
    "configuration",
    "lazy",
    "post_construct",
    "pre_destroy",
    "primary",
    "repository",
    "scope",
    "service",
]
