from __future__ import annotations

import inspect
import typing
from typing import Any


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def is_protocol(tp: object) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def is_protocol(tp: object) -> bool:
        """Detect whether 'tp' is itself a typing.Protocol class (not a nominal implementation)."""
        return inspect.isclass(tp) and bool(getattr(tp, "_is_protocol", False)) and tp is not typing.Protocol


def is_runtime_checkable_protocol(tp: type) -> bool:
    if not is_protocol(tp):
        return False

    try:
        isinstance(None, tp)
    except TypeError:
        return False
    else:
        return True


def is_autowirable(tp: object) -> bool:
    """A concrete class the container may construct without a registration."""
    return inspect.isclass(tp) and not is_protocol(tp) and not inspect.isabstract(tp)


def is_assignable(provided: type, required: type) -> bool:
    """Whether a bean of type `provided` may be injected where `required` is expected."""
    if provided is required:
        return True
    if not (inspect.isclass(provided) and inspect.isclass(required)):
        return False
    if is_protocol(required):
        try:
            validate_protocol_impl(required, provided)
        except TypeError:
            return False
        return True
    return issubclass(provided, required)


def validate_impl(cls: type, impl: type) -> None:
    """Validate that 'impl' implements 'cls'.

    - For normal classes/ABCs: require issubclass(impl, cls).
    - For Protocols: nominal via MRO, otherwise structural conformance.
    """
    if not inspect.isclass(cls):
        msg = "Name tokens cannot be validated statically"
        raise ValueError(msg)

    if not is_protocol(cls):
        if not issubclass(impl, cls):
            msg = f"Implementation {impl.__name__} must be a subclass of {cls.__name__}"
            raise TypeError(msg)
        return

    validate_protocol_impl(cls, impl)


def check_resolved(required: type, instance: object, *, from_factory: bool) -> None:
    """Check an instance produced for a type lookup against the requested type.

    Class-based beans were validated at registration; factories can only be
    checked once they have produced something.
    """
    if is_protocol(required):
        try:
            validate_protocol_impl(required, type(instance))
        except TypeError as e:
            msg = f"Resolved instance {type(instance).__name__} does not conform to protocol {required.__name__}"
            raise TypeError(msg) from e

        if is_runtime_checkable_protocol(required) and not isinstance(instance, required):
            msg = f"Resolved instance {type(instance).__name__} does not implement runtime protocol {required.__name__}"
            raise TypeError(msg)

    elif from_factory and not isinstance(instance, required):
        msg = f"Resolved instance {type(instance).__name__} is not an instance of {required.__name__}"
        raise TypeError(msg)


def validate_protocol_impl(proto_cls: type, impl: type) -> None:
    """Nominal conformance via the MRO, otherwise best-effort structural conformance of methods."""
    if proto_cls in getattr(impl, "__mro__", ()):
        return

    problems: list[str] = []
    for name, proto_attr in proto_cls.__dict__.items():
        if name.startswith("_") or not inspect.isfunction(proto_attr):
            continue
        if not hasattr(impl, name):
            problems.append(f"missing member {name}")
            continue
        mismatch = _signature_mismatch(name, proto_attr, getattr(impl, name))
        if mismatch is not None:
            problems.append(mismatch)

    if problems:
        msg = (
            f"Implementation {impl.__name__} does not structurally conform to protocol "
            f"{proto_cls.__name__}: {'; '.join(problems)}"
        )
        raise TypeError(msg)


def _signature_mismatch(name: str, proto_attr: Any, impl_attr: Any) -> str | None:
    if not callable(impl_attr):
        return f"{name}: not Callable"

    try:
        proto_sig = inspect.signature(proto_attr)
        impl_sig = inspect.signature(impl_attr)
    except (TypeError, ValueError) as e:
        return f"{name}: unable to compare signatures ({e})"

    proto_arity = _required_positional(proto_sig)
    impl_arity = _required_positional(impl_sig)
    if impl_arity < proto_arity:
        return f"{name}: impl has fewer required positional params ({impl_arity}) than protocol ({proto_arity})"

    proto_ret = proto_sig.return_annotation
    impl_ret = impl_sig.return_annotation
    if inspect.Signature.empty in (proto_ret, impl_ret) or Any in (proto_ret, impl_ret) or impl_ret == proto_ret:
        return None
    # class-based covariance; unions, protocols and type variables fail conservatively
    if isinstance(impl_ret, type) and isinstance(proto_ret, type) and issubclass(impl_ret, proto_ret):
        return None
    return f"{name}: return type {impl_ret!r} is not compatible with protocol return type {proto_ret!r}"


def _required_positional(sig: inspect.Signature) -> int:
    return sum(
        1
        for p in sig.parameters.values()
        if p.name != "self"
        and p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        and p.default is inspect.Parameter.empty
    )
