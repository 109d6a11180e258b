from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Callable


class Lifetime(Enum):
    SINGLETON = "singleton"
    PROTOTYPE = "prototype"


@dataclass
class BeanDefinition:
    """Everything the container knows about one bean.

    `types` are the types the bean can be looked up by. Exactly one of
    `impl`, `factory` or `cached_instance` (pre-built) is the source of
    the instance. `created` tells a cached `None` from no instance yet.
    """

    name: str
    types: tuple[type, ...]
    impl: type | None = None
    factory: Callable[..., object] | None = None
    lifetime: Lifetime = Lifetime.SINGLETON
    primary: bool = False
    lazy: bool = False
    init_method: str | None = None
    destroy_method: str | None = None
    cached_instance: object | None = None  # cached singleton
    created: bool = False

    @property
    def is_singleton(self) -> bool:
        return self.lifetime is Lifetime.SINGLETON

    @property
    def is_prototype(self) -> bool:
        return self.lifetime is Lifetime.PROTOTYPE


_ACRONYM = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD = re.compile(r"([a-z0-9])([A-Z])")


def default_bean_name(cls: type) -> str:
    """Snake-case form of the class name: `MyBatisAlphaDao` -> `my_batis_alpha_dao`."""
    name = _ACRONYM.sub(r"\1_\2", cls.__name__)
    return _WORD.sub(r"\1_\2", name).lower()


def to_lifetime(value: Lifetime | str) -> Lifetime:
    if isinstance(value, Lifetime):
        return value
    try:
        return Lifetime(value.lower())
    except ValueError:
        msg = f"Unknown scope {value!r}; expected one of {[lt.value for lt in Lifetime]}"
        raise ValueError(msg) from None
