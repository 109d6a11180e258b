from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
from abc import ABC, abstractmethod
from datetime import datetime
from types import ModuleType
from typing import TYPE_CHECKING, Any, TypeVar, get_type_hints, overload

from ._container import Container
from ._definition import BeanDefinition, default_bean_name
from ._stereotypes import (
    ComponentInfo,
    bean_methods,
    class_lifetime,
    component_info,
    is_lazy,
    is_primary,
)


if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Self

    T = TypeVar("T")

    Source = ModuleType | type | str


logger = logging.getLogger(__name__)


class ApplicationContextAware(ABC):
    """Implemented by objects that want a reference to the context that wires them."""

    @abstractmethod
    def set_application_context(self, context: ApplicationContext) -> None: ...


class ApplicationContext:
    """Container front-end that discovers decorated components and manages their lifecycle.

    Sources are modules, packages (scanned recursively), dotted module names or
    decorated classes. Non-lazy singletons are created on `refresh()`, which
    runs on construction unless `refresh=False`.
    """

    def __init__(self, *sources: Source, container: Container | None = None, refresh: bool = True) -> None:
        self._container = container if container is not None else Container()
        self._started_at: datetime | None = None
        self._scanned: set[type] = set()
        self._container.register_instance("application_context", self)
        self._container.add_post_processor(self._set_aware_context)

        for source in sources:
            self.scan(source)

        if refresh:
            self.refresh()

    @property
    def container(self) -> Container:
        return self._container

    @property
    def started_at(self) -> datetime | None:
        return self._started_at

    def scan(self, source: Source) -> list[str]:
        """Register every component found in `source`; return the new bean names."""
        names: list[str] = []
        for cls, info in _find_components(source):
            # overlapping sources find the same class twice
            if cls in self._scanned:
                continue
            self._scanned.add(cls)
            for definition in _component_definitions(cls, info):
                self._container.register_definition(definition)
                names.append(definition.name)

        logger.debug("Scanned %r: %d beans", source, len(names))
        return names

    def register(self, *args: Any, **kwargs: Any) -> BeanDefinition:
        return self._container.register(*args, **kwargs)

    def refresh(self) -> None:
        self._container.preinstantiate_singletons()
        self._started_at = datetime.now()
        logger.info("Started %s with %d beans", self, len(self._container.bean_names()))

    @overload
    def get_bean(self, token: type[T]) -> T: ...

    @overload
    def get_bean(self, token: str, required_type: type[T]) -> T: ...

    @overload
    def get_bean(self, token: str, required_type: None = ...) -> object: ...

    def get_bean(self, token: type[T] | str, required_type: type | None = None) -> object:
        return self._container.get_bean(token, required_type)  # type: ignore[arg-type]

    def get_beans_of_type(self, required: type[T]) -> dict[str, T]:
        return self._container.get_beans_of_type(required)

    def contains_bean(self, name: str) -> bool:
        return name in self._container

    def bean_names(self) -> list[str]:
        return self._container.bean_names()

    def is_singleton(self, name: str) -> bool:
        return self._container.definition(name).is_singleton

    def is_prototype(self, name: str) -> bool:
        return self._container.definition(name).is_prototype

    def autowire(self, obj: object) -> None:
        """Inject `Autowired` fields into an object the context did not create, such as a test case."""
        self._container.autowire(obj)
        self._set_aware_context(obj)

    def close(self) -> None:
        if not self._container.closed:
            logger.info("Closing %s", self)
        self._container.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __str__(self) -> str:
        ident = f"{type(self).__name__}@{id(self):x}"
        if self._started_at is None:
            return f"{ident}, not started"
        return f"{ident}, started on {self._started_at:%a %b %d %H:%M:%S %Y}"

    def _set_aware_context(self, instance: object) -> None:
        if isinstance(instance, ApplicationContextAware):
            instance.set_application_context(self)


def _find_components(source: Source) -> list[tuple[type, ComponentInfo]]:
    if inspect.isclass(source):
        info = component_info(source)
        return [(source, info)] if info is not None else []

    module = importlib.import_module(source) if isinstance(source, str) else source
    found: dict[type, ComponentInfo] = {}
    for mod in _walk_modules(module):
        for obj in vars(mod).values():
            if not inspect.isclass(obj) or obj.__module__ != mod.__name__:
                continue
            info = component_info(obj)
            if info is not None:
                found[obj] = info
    return list(found.items())


def _walk_modules(module: ModuleType) -> Iterable[ModuleType]:
    yield module
    path = getattr(module, "__path__", None)
    if path is None:
        return
    for info in pkgutil.walk_packages(path, prefix=f"{module.__name__}."):
        # importing a __main__ module would run the program
        if info.name.rpartition(".")[2] == "__main__":
            continue
        yield importlib.import_module(info.name)


def _component_definitions(cls: type, info: ComponentInfo) -> list[BeanDefinition]:
    name = info.name or default_bean_name(cls)
    definitions = [
        BeanDefinition(
            name=name,
            types=(cls,),
            impl=cls,
            lifetime=class_lifetime(cls),
            primary=is_primary(cls),
            lazy=is_lazy(cls),
        )
    ]

    for attr, method_info in bean_methods(cls):
        func = cls.__dict__[attr]
        try:
            ret = get_type_hints(func).get("return")
        except NameError as exc:
            logger.warning("'%s' name error retrieving %s.%s return type", exc.name, cls.__name__, attr)
            ret = None
        definitions.append(
            BeanDefinition(
                name=method_info.name or attr,
                types=(ret,) if inspect.isclass(ret) else (),
                factory=_BeanMethod(name, attr),
                lifetime=method_info.lifetime,
                primary=method_info.primary,
                init_method=method_info.init_method,
                destroy_method=method_info.destroy_method,
            )
        )

    return definitions


class _BeanMethod:
    """Factory calling a `@bean` method on its configuration bean, autowiring its parameters."""

    def __init__(self, config_name: str, attr: str) -> None:
        self.config_name = config_name
        self.attr = attr

    def __call__(self, container: Container, **overrides: Any) -> object:
        config = container.resolve_named(self.config_name)
        return container.invoke(getattr(config, self.attr), **overrides)

    def __repr__(self) -> str:
        return f"<bean method {self.config_name}.{self.attr}>"
