from typing import Protocol, runtime_checkable

import pytest

from beanbind import CircularDependencyError, Container, Lifetime, NoSuchBeanError, ResolutionError


def test_resolve_unregistered_name_raises():
    c = Container()
    with pytest.raises(NoSuchBeanError):
        c.resolve("unknown-bean")


def test_get_bean_unregistered_concrete_type_raises():
    c = Container()

    class A: ...

    with pytest.raises(NoSuchBeanError):
        c.get_bean(A)


def test_resolve_register_singleton_impl_derived_with_token_base_class():
    c = Container()

    class Base: ...

    class Derived(Base): ...

    c.register(Base, impl=Derived, lifetime=Lifetime.SINGLETON)
    a = c.resolve(Base)
    assert isinstance(a, Derived)


def test_resolve_register_prototype_impl_derived_with_token_base_class():
    c = Container()

    class Base: ...

    class Derived(Base): ...

    c.register(Base, impl=Derived, lifetime=Lifetime.PROTOTYPE)
    a = c.resolve(Base)
    assert isinstance(a, Derived)


def test_register_type_token_uses_snake_case_impl_name():
    c = Container()

    class Base: ...

    class HTTPDerivedImpl(Base): ...

    definition = c.register(Base, impl=HTTPDerivedImpl)
    assert definition.name == "http_derived_impl"
    assert "http_derived_impl" in c
    assert isinstance(c.resolve("http_derived_impl"), HTTPDerivedImpl)


def test_register_derived_is_found_by_its_own_type_and_by_base():
    c = Container()

    class Base: ...

    class Derived(Base): ...

    c.register(Base, impl=Derived)
    assert c.get_bean(Derived) is c.get_bean(Base)


def test_register_rejects_impl_and_factory_together():
    c = Container()

    class A: ...

    with pytest.raises(ValueError, match="not both"):
        c.register(A, impl=A, factory=lambda _: A())


def test_register_requires_impl_or_factory():
    c = Container()

    class A: ...

    with pytest.raises(ValueError, match="must be provided"):
        c.register(A)


def test_register_duplicate_name_raises_key_error():
    c = Container()

    class A: ...

    c.register("a", A)
    with pytest.raises(KeyError):
        c.register("a", A)


def test_resolve_autowires_simple_type():
    c = Container()

    class A: ...

    obj = c.resolve(A)
    assert isinstance(obj, A)


def test_resolve_autowires_recursively_from_annotations():
    c = Container()

    class DB: ...

    class Repo:
        def __init__(self, db: DB):
            self.db = db

    class Service:
        def __init__(self, repo: Repo):
            self.repo = repo

    svc = c.resolve(Service)
    assert isinstance(svc, Service)
    assert isinstance(svc.repo, Repo)
    assert isinstance(svc.repo.db, DB)


def test_resolve_autowired_unregistered_class_is_not_registered():
    c = Container()

    class A: ...

    assert c.resolve(A) is not c.resolve(A)
    assert c.bean_names() == []


def test_resolve_register_factory_name_based_resolution_no_annotations():
    c = Container()

    class DB: ...

    class RepoNoTypeAnnotation:
        def __init__(self, db):  # no annotation: relies on the bean name
            self.db = db

    c.register("db", factory=lambda _: DB())
    obj = c.resolve(RepoNoTypeAnnotation)
    assert isinstance(obj.db, DB)


def test_resolve_raises_when_dependencies_not_annotated_nor_registered_by_name():
    c = Container()

    class RepoNoTypeAnnotation:
        def __init__(self, db):  # no type annotation
            self.db = db

    with pytest.raises(RuntimeError):
        c.resolve(RepoNoTypeAnnotation)


def test_resolve_no_annotation_nor_name_uses_default():
    c = Container()

    class WithDefault:
        def __init__(self, port: int = 5555):
            self.port = port

    obj = c.resolve(WithDefault)
    assert obj.port == 5555


def test_resolve_override_default_argument():
    c = Container()

    class WithDefault:
        def __init__(self, port: int = 5555):
            self.port = port

    obj = c.resolve(WithDefault, port=9898)
    assert obj.port == 9898


def test_unsatisfied_constructor_param_raises():
    c = Container()

    class ClassWithParams:
        def __init__(self, param: int):
            self.param = param

    with pytest.raises(ResolutionError) as ctx:
        c.resolve(ClassWithParams)
    assert "Cannot satisfy constructor parameter 'param'" in str(ctx.value)


def test_unsatisfied_protocol_param_raises():
    c = Container()

    class Clock(Protocol):
        def now(self) -> float: ...

    class Timer:
        def __init__(self, clock: Clock):
            self.clock = clock

    with pytest.raises(ResolutionError, match="annotation: Clock"):
        c.resolve(Timer)


def test_factory_can_receive_container():
    c = Container()

    class DB: ...

    def make_db(cont: Container):
        assert cont is c
        return DB()

    c.register("db", factory=make_db)
    assert isinstance(c.resolve("db"), DB)


def test_factory_return_annotation_makes_named_bean_resolvable_by_type():
    c = Container()

    class DB: ...

    def make_db(_: Container) -> DB:
        return DB()

    c.register("db", factory=make_db)
    assert c.get_bean(DB) is c.resolve("db")


def test_resolve_register_factory_overrides_values():
    c = Container()

    def make_value(container: Container, value: int = 0):
        assert c is container
        return value

    c.register("value", factory=make_value, lifetime=Lifetime.PROTOTYPE)
    assert c.resolve("value", value=42) == 42
    assert c.resolve("value") == 0


def test_invoke_injects_missing_arguments():
    c = Container()

    class DB: ...

    c.register(DB, DB)

    def handler(db: DB, limit: int = 10):
        return db, limit

    db, limit = c.invoke(handler, limit=3)
    assert db is c.get_bean(DB)
    assert limit == 3


def test_resolve_register_factory_runtime_protocol_check_for_conforming_instance_passes():
    c = Container()

    @runtime_checkable
    class RepoProtocol(Protocol):
        def get(self) -> int: ...

    class RepoImpl:
        def get(self) -> int:
            return 1

    c.register(RepoProtocol, factory=lambda _: RepoImpl())
    repo = c.resolve(RepoProtocol)
    assert isinstance(repo, RepoImpl)
    assert repo.get() == 1


def test_resolve_register_factory_non_runtime_protocol_for_non_conforming_raises():
    c = Container()

    class NonRuntimeProtocol(Protocol):
        def do(self) -> None: ...

    c.register(NonRuntimeProtocol, factory=lambda _: object())

    with pytest.raises(TypeError):
        c.resolve(NonRuntimeProtocol)


def test_resolve_register_factory_for_class_token_returning_wrong_type_raises():
    c = Container()

    class DB: ...

    c.register(DB, factory=lambda _: "not a db")

    with pytest.raises(TypeError, match="is not an instance of DB"):
        c.resolve(DB)


def test_resolve_named_dependencies_factory():
    c = Container()

    class Repo1: ...

    class Repo2: ...

    class Service:
        def __init__(self, repo1: Repo1, repo2: Repo2, name: str = ""):
            self.repo1 = repo1
            self.repo2 = repo2
            self.name = name

    c.register(
        "svc",
        factory=lambda c, r1="r1", r2="r2", name="name": Service(c.resolve(r1), c.resolve(r2), c.resolve(name)),
    )
    c.register("r1", Repo1)
    c.register("r2", Repo2)
    c.register_instance("name", "hello")

    obj = c.resolve("svc", r1="r1", r2="r2")
    assert isinstance(obj.repo1, Repo1)
    assert isinstance(obj.repo2, Repo2)
    assert obj.name == "hello"


def test_get_beans_of_type_returns_every_candidate_by_name():
    c = Container()

    class Base: ...

    class One(Base): ...

    class Two(Base): ...

    c.register(Base, One)
    c.register(Base, Two)

    beans = c.get_beans_of_type(Base)
    assert set(beans) == {"one", "two"}
    assert isinstance(beans["one"], One)
    assert isinstance(beans["two"], Two)


def test_resolve_ignores_inherited_variadic_args_and_kwargs():
    c = Container()

    class Base:
        def __init__(self, value: int = 7, *args, **kwargs):
            self.value = value
            self.args = args
            self.kwargs = kwargs

    class Derived(Base): ...

    child = c.resolve(Derived)
    assert child.value == 7
    assert child.args == ()
    assert child.kwargs == {}


def test_resolve_forwards_unmatched_overrides_through_variadic_kwargs():
    c = Container()

    class Base:
        def __init__(self, value: int = 7, **kwargs):
            self.value = value
            self.kwargs = kwargs

    class Derived(Base):
        def __init__(self, name: str, **kwargs):
            super().__init__(**kwargs)
            self.name = name

    child = c.resolve(Derived, a=5, name="abc")

    assert child.kwargs["a"] == 5
    assert child.value == 7
    assert child.name == "abc"


def test_resolve_circular_dependency_raises():
    c = Container()

    class A:
        def __init__(self, b):
            self.b = b

    class B:
        def __init__(self, a):
            self.a = a

    c.register("a", A)
    c.register("b", B)

    with pytest.raises(CircularDependencyError):
        c.resolve("a")


def test_resolve_unannotated_parameters_use_bean_name_then_default():
    c = Container()

    class DB: ...

    class Repo:
        def __init__(self, db, retries=3):
            self.db = db
            self.retries = retries

    c.register("db", DB)
    repo = c.resolve(Repo)

    assert isinstance(repo.db, DB)
    assert repo.retries == 3


class Left:
    def __init__(self, right: "Right"):
        self.right = right


class Right:
    def __init__(self, left: Left):
        self.left = left


def test_resolve_circular_unregistered_classes_raises():
    c = Container()

    with pytest.raises(CircularDependencyError, match="Left"):
        c.resolve(Left)
