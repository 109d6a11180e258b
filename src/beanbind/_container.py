from __future__ import annotations

import inspect
import logging
import sys
import threading
from typing import (
    TYPE_CHECKING,
    Any,
    ParamSpec,
    TypeVar,
    get_type_hints,
    overload,
)

from ._constructor import Constructor
from ._definition import BeanDefinition, Lifetime, default_bean_name
from ._errors import (
    BeanNotOfRequiredTypeError,
    CircularDependencyError,
    ContainerClosedError,
    NoSuchBeanError,
    NoUniqueBeanError,
    ResolutionError,
)
from ._stereotypes import POST_CONSTRUCT, PRE_DESTROY, lifecycle_methods, split_annotation
from ._validation import check_resolved, is_assignable, is_autowirable, validate_impl


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Self

    T = TypeVar("T")
    # factory parameters
    P = ParamSpec("P")

    Token = type[T] | str


class Container:
    """Minimal DI container.

    - register types, factories or pre-built instances, by type and/or name
    - resolve with constructor and field injection
    - lifetimes: singleton / prototype
    - primary beans and name qualifiers to pick among several candidates
    - post-construct / pre-destroy lifecycle hooks
    - optional scoping.
    """

    def __init__(self) -> None:
        self._definitions: dict[str, BeanDefinition] = {}
        self._lock = threading.RLock()
        self._post_processors: list[Callable[[object], None]] = []
        # created singletons, in creation order
        self._disposables: list[tuple[BeanDefinition, object]] = []
        self._in_creation: set[str] = set()
        # unregistered classes being auto-wired
        self._autowiring: set[type] = set()
        self._closed = False

    @overload
    def register(
        self,
        token: type[T],
        impl: type[T],
        *,
        factory: None = ...,
        lifetime: Lifetime = Lifetime.SINGLETON,
        name: str | None = ...,
        primary: bool = ...,
        init_method: str | None = ...,
        destroy_method: str | None = ...,
        replace: bool = ...,
    ) -> BeanDefinition: ...

    @overload
    def register(
        self,
        token: type[T],
        impl: None = ...,
        *,
        factory: Callable[P, T],
        lifetime: Lifetime = Lifetime.SINGLETON,
        name: str | None = ...,
        primary: bool = ...,
        init_method: str | None = ...,
        destroy_method: str | None = ...,
        replace: bool = ...,
    ) -> BeanDefinition: ...

    @overload
    def register(
        self,
        token: str,
        impl: type | None = ...,
        *,
        factory: Callable[..., Any] | None = ...,
        lifetime: Lifetime = Lifetime.SINGLETON,
        primary: bool = ...,
        init_method: str | None = ...,
        destroy_method: str | None = ...,
        replace: bool = ...,
    ) -> BeanDefinition: ...

    def register(
        self,
        token: Token[T],
        impl: type | None = None,
        *,
        factory: Callable[..., Any] | None = None,
        lifetime: Lifetime = Lifetime.SINGLETON,
        name: str | None = None,
        primary: bool = False,
        init_method: str | None = None,
        destroy_method: str | None = None,
        replace: bool = False,
    ) -> BeanDefinition:
        """Register a concrete type or a factory for a token.

        A type token makes the bean resolvable by that type; its name defaults
        to the snake-cased implementation class name. A string token is the
        bean name itself.

        Example:
          container.register(AlphaDao, HibernateAlphaDao, name="alpha_hibernate")
          container.register("db", factory=create_db, lifetime=Lifetime.PROTOTYPE)

        """
        if impl is not None and factory is not None:
            msg = "Provide either `impl` or `factory`, not both."
            raise ValueError(msg)

        if impl is None and factory is None:
            msg = "Either `impl` or `factory` must be provided."
            raise ValueError(msg)

        if isinstance(token, str):
            if name is not None and name != token:
                msg = f"Bean name given twice: token {token!r} and name {name!r}"
                raise ValueError(msg)
            bean_name = token
            types: tuple[type, ...] = (impl,) if impl is not None else _factory_types(factory)
        else:
            if impl is not None:
                validate_impl(cls=token, impl=impl)
            bean_name = name or default_bean_name(impl or token)
            types = (token,) if impl is None or impl is token else (token, impl)

        definition = BeanDefinition(
            name=bean_name,
            types=types,
            impl=impl,
            factory=factory,
            lifetime=lifetime,
            primary=primary,
            init_method=init_method,
            destroy_method=destroy_method,
        )
        self.register_definition(definition, replace=replace)
        return definition

    def register_instance(
        self,
        token: Token[T],
        instance: object,
        *,
        name: str | None = None,
        primary: bool = False,
        replace: bool = False,
    ) -> BeanDefinition:
        """Register a pre-built instance (always singleton, never initialized or destroyed here)."""
        if isinstance(token, str):
            bean_name = token
            types: tuple[type, ...] = (type(instance),)
        else:
            validate_impl(cls=token, impl=type(instance))
            bean_name = name or default_bean_name(type(instance))
            types = (token,) if type(instance) is token else (token, type(instance))

        definition = BeanDefinition(
            name=bean_name,
            types=types,
            lifetime=Lifetime.SINGLETON,
            primary=primary,
            cached_instance=instance,
            created=True,
        )
        self.register_definition(definition, replace=replace)
        return definition

    def register_definition(self, definition: BeanDefinition, *, replace: bool = False) -> None:
        with self._lock:
            if not replace and definition.name in self._definitions:
                msg = f"Bean {definition.name!r} is already registered. Pass replace=True to overwrite."
                raise KeyError(msg)
            self._definitions[definition.name] = definition
        logger.debug("Registered %s bean %r for %s", definition.lifetime.value, definition.name, definition.types)

    def add_post_processor(self, processor: Callable[[object], None]) -> None:
        """Run `processor` on every bean the container initializes, before its init hooks."""
        self._post_processors.append(processor)

    @overload
    def resolve(self, token: type[T], **overrides: Any) -> T: ...

    @overload
    def resolve(self, token: str, **overrides: Any) -> object: ...

    def resolve(self, token: Token[T], **overrides: Any) -> object:
        """Resolve the token to an instance.

        - A name resolves the bean registered under that name.
        - A type resolves its single candidate, or the primary one among several.
        - An unregistered concrete class is auto-wired by type hints (not registered).
        `overrides` lets you explicitly supply constructor args.
        """
        with self._lock:
            if isinstance(token, str):
                return self.resolve_named(token, **overrides)
            return self._resolve_type(token, autowire_unregistered=True, **overrides)

    @overload
    def get_bean(self, token: type[T]) -> T: ...

    @overload
    def get_bean(self, token: str, required_type: type[T]) -> T: ...

    @overload
    def get_bean(self, token: str, required_type: None = ...) -> object: ...

    def get_bean(self, token: Token[T], required_type: type | None = None) -> object:
        """Strict lookup: only registered beans, by type or by name (optionally type-checked)."""
        with self._lock:
            if isinstance(token, str):
                return self.resolve_named(token, required_type)
            return self._resolve_type(token, autowire_unregistered=False)

    def get_beans_of_type(self, required: type[T]) -> dict[str, T]:
        with self._lock:
            return {d.name: self._checked(d, required) for d in self._candidates(required)}

    def resolve_named(self, name: str, required_type: type | None = None, **overrides: Any) -> Any:
        with self._lock:
            definition = self._definition_named(name)
            if definition is None:
                msg = f"No bean named {name!r} is registered"
                raise NoSuchBeanError(msg)

            instance = self._instantiate(definition, **overrides)

        if required_type is not None and not is_assignable(type(instance), required_type):
            msg = (
                f"Bean {name!r} is of type {type(instance).__name__}, "
                f"not of required type {required_type.__name__}"
            )
            raise BeanNotOfRequiredTypeError(msg)
        return instance

    def contains(self, name: str) -> bool:
        return self._definition_named(name) is not None

    __contains__ = contains

    def definition(self, name: str) -> BeanDefinition:
        definition = self._definition_named(name)
        if definition is None:
            msg = f"No bean named {name!r} is registered"
            raise NoSuchBeanError(msg)
        return definition

    def bean_names(self) -> list[str]:
        return list(self._definitions)

    def autowire(self, instance: object) -> None:
        """Inject every attribute annotated with `Autowired` on `instance`'s class."""
        for attr, hint in _class_type_hints(type(instance)).items():
            base, qualifier, autowired = split_annotation(hint)
            if autowired is None:
                continue

            if not autowired.required and not self._can_satisfy(base, qualifier):
                logger.debug("Leaving optional field %s.%s unset", type(instance).__name__, attr)
                continue

            if qualifier is not None:
                value = self.resolve_named(qualifier.name, base if inspect.isclass(base) else None)
            else:
                value = self._resolve_type(base, hint_name=attr, autowire_unregistered=_matched_by_type(base))
            setattr(instance, attr, value)

    def preinstantiate_singletons(self) -> None:
        with self._lock:
            for definition in list(self._definitions.values()):
                if definition.is_singleton and not definition.lazy:
                    self._instantiate(definition)

    def resolve_param(
        self,
        owner: str,
        name: str,
        p: inspect.Parameter,
        bound: inspect.BoundArguments,
        hints: dict[str, Any],
    ) -> Any:
        """Resolving param.

        Resolution precedence:
        1. explicit override
        2. qualifier (by name)
        3. type-based registration
        4. name-based registration
        5. default
        6. error.
        """
        # Skip var-positional/var-keyword here; filled only by explicit extras
        if p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            return inspect.Signature.empty

        # 0) already explicitly bound
        if name in bound.arguments:
            return bound.arguments[name]

        ann, qualifier, _ = split_annotation(hints.get(name, inspect.Signature.empty))

        # 1) qualifier
        if qualifier is not None:
            return self.resolve_named(qualifier.name, ann if inspect.isclass(ann) else None)

        # 2) type-based; builtins only ever match by name
        if (
            ann is not inspect.Signature.empty
            and _matched_by_type(ann)
            and (self._candidates(ann) or is_autowirable(ann))
        ):
            return self._resolve_type(ann, hint_name=name, autowire_unregistered=True)

        # 3) name-based
        if self._definition_named(name) is not None:
            return self.resolve_named(name)

        # 4) default
        if p.default is not inspect.Parameter.empty:
            return p.default

        # 5) error
        ann_repr = getattr(ann, "__name__", repr(ann)) if ann is not inspect.Signature.empty else "no-annotation"
        msg = (
            f"Cannot satisfy constructor parameter '{name}' for {owner}. "
            f"No override/registration/default found (annotation: {ann_repr})."
        )
        raise ResolutionError(msg)

    def create_scope(self) -> Scope:
        """Create a scope that prefers its own registrations/instances, falls back to parent."""
        return Scope(self, _from_parent=True)

    def close(self) -> None:
        """Destroy created singletons in reverse creation order.

        Prototypes are handed over to the caller and never destroyed here.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            disposables = list(reversed(self._disposables))
            self._disposables.clear()

        for definition, instance in disposables:
            try:
                _run_hooks(instance, PRE_DESTROY, definition.destroy_method)
            except Exception:
                logger.warning("Destroy hook of bean %r failed", definition.name, exc_info=True)
            else:
                logger.debug("Destroyed bean %r", definition.name)
            definition.cached_instance = None
            definition.created = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _candidates(self, required: type) -> list[BeanDefinition]:
        return [d for d in self._definitions.values() if any(is_assignable(t, required) for t in d.types)]

    def _definition_named(self, name: str) -> BeanDefinition | None:
        return self._definitions.get(name)

    def _can_satisfy(self, required: Any, qualifier: Any) -> bool:
        if qualifier is not None:
            return self._definition_named(qualifier.name) is not None
        if not inspect.isclass(required):
            return False
        return bool(self._candidates(required)) or (_matched_by_type(required) and is_autowirable(required))

    def _select(self, required: type, hint_name: str | None) -> BeanDefinition | None:
        candidates = self._candidates(required)
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]

        primaries = [d for d in candidates if d.primary]
        if len(primaries) == 1:
            return primaries[0]

        # fall back to the injection point name as an implicit qualifier
        for d in candidates:
            if d.name == hint_name:
                return d

        raise NoUniqueBeanError(required, [d.name for d in candidates])

    def _resolve_type(
        self,
        required: type[T],
        *,
        hint_name: str | None = None,
        autowire_unregistered: bool,
        **overrides: Any,
    ) -> T:
        definition = self._select(required, hint_name)
        if definition is not None:
            return self._checked(definition, required, **overrides)

        if autowire_unregistered and is_autowirable(required):
            # If no registration found and token is a concrete class, try auto-wiring
            if required in self._autowiring:
                msg = f"Class {required.__name__} is currently being auto-wired: is there an unresolvable circular reference?"
                raise CircularDependencyError(msg)

            self._autowiring.add(required)
            try:
                instance = self._construct(required, **overrides)
                self._initialize(instance, None)
            finally:
                self._autowiring.discard(required)
            return instance

        msg = f"No bean of type {getattr(required, '__name__', repr(required))} is registered"
        raise NoSuchBeanError(msg)

    def _checked(self, definition: BeanDefinition, required: type[T], **overrides: Any) -> T:
        instance = self._instantiate(definition, **overrides)
        check_resolved(required, instance, from_factory=definition.factory is not None)
        return instance  # type: ignore[return-value]

    def _instantiate(self, definition: BeanDefinition, **overrides: Any) -> object:
        with self._lock:
            if self._closed:
                msg = f"Cannot create bean {definition.name!r}: the container has been closed"
                raise ContainerClosedError(msg)

            # Return cached singleton if present
            if definition.is_singleton and definition.created:
                return definition.cached_instance

            if definition.name in self._in_creation:
                msg = f"Bean {definition.name!r} is currently in creation: is there an unresolvable circular reference?"
                raise CircularDependencyError(msg)

            self._in_creation.add(definition.name)
            try:
                if definition.factory is not None:
                    instance = definition.factory(self, **overrides)
                elif definition.impl is not None:
                    instance = self._construct(definition.impl, **overrides)
                else:
                    msg = f"Bean {definition.name!r} has neither an implementation nor a factory"
                    raise ResolutionError(msg)
                self._initialize(instance, definition)
            finally:
                self._in_creation.discard(definition.name)

            if definition.is_singleton:
                definition.cached_instance = instance
                definition.created = True
                self._disposables.append((definition, instance))
            logger.debug("Created %s bean %r", definition.lifetime.value, definition.name)
            return instance

    def _initialize(self, instance: object, definition: BeanDefinition | None) -> None:
        self.autowire(instance)
        for processor in self._post_processors:
            processor(instance)
        _run_hooks(instance, POST_CONSTRUCT, definition.init_method if definition else None)

    def _construct(self, cls: type[T], **overrides: Any) -> T:
        return Constructor(self).construct(cls, **overrides)

    def invoke(self, func: Callable[..., T], **overrides: Any) -> T:
        """Call `func`, injecting any parameter not given in `overrides`."""
        return Constructor(self).invoke(func, **overrides)


class Scope(Container):
    """A scoped container that looks up in itself first, then falls back to a parent container.

    Beans found in the parent are created and cached by the parent.
    Useful for per-request/per-test lifetimes without altering root registrations.
    """

    def __init__(self, parent: Container, *, _from_parent: bool = False) -> None:
        if not _from_parent:
            msg = "Scope instances must be created via Container.create_scope()"
            raise RuntimeError(msg)
        super().__init__()
        self._parent = parent

    def _candidates(self, required: type) -> list[BeanDefinition]:
        return super()._candidates(required) or self._parent._candidates(required)  # noqa: SLF001

    def _definition_named(self, name: str) -> BeanDefinition | None:
        local = super()._definition_named(name)
        return local if local is not None else self._parent._definition_named(name)  # noqa: SLF001

    def _instantiate(self, definition: BeanDefinition, **overrides: Any) -> object:
        if self._definitions.get(definition.name) is not definition:
            return self._parent._instantiate(definition, **overrides)  # noqa: SLF001
        return super()._instantiate(definition, **overrides)


def _run_hooks(instance: object, kind: str, extra_method: str | None) -> None:
    for attr in lifecycle_methods(type(instance), kind):
        getattr(instance, attr)()
    if extra_method is not None:
        getattr(instance, extra_method)()


def _factory_types(factory: Callable[..., Any] | None) -> tuple[type, ...]:
    try:
        ret = get_type_hints(factory).get("return")
    except (TypeError, NameError):
        return ()
    return (ret,) if inspect.isclass(ret) else ()


def _matched_by_type(tp: object) -> bool:
    """Classes injected by type; builtins (`int`, `str`, ...) only ever match by name or registration."""
    return inspect.isclass(tp) and tp.__module__ != "builtins"


def _class_type_hints(cls: type) -> dict[str, Any]:
    try:
        return get_type_hints(cls, include_extras=True)
    except TypeError:
        return {}
    except NameError:
        pass

    # one unresolvable annotation must not hide the others
    hints: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        module = sys.modules.get(klass.__module__)
        globalns = vars(module) if module is not None else {}
        try:
            annotations = inspect.get_annotations(klass)
        except NameError as exc:
            logger.warning("'%s' name error retrieving %s type hints", exc.name, klass.__qualname__)
            continue

        for attr, raw in annotations.items():
            if not isinstance(raw, str):
                hints[attr] = raw
                continue
            try:
                hints[attr] = eval(raw, globalns, dict(vars(klass)))  # noqa: S307
            except NameError as exc:
                if "Autowired" in raw:
                    msg = f"Cannot resolve type hint {raw!r} of autowired field {cls.__name__}.{attr}"
                    raise ResolutionError(msg) from exc
                logger.warning("'%s' name error retrieving %s.%s type hint", exc.name, cls.__qualname__, attr)
                hints.pop(attr, None)
    return hints
