class ResolutionError(RuntimeError):
    pass


class NoSuchBeanError(ResolutionError):
    """No bean matches the requested name or type."""


class NoUniqueBeanError(ResolutionError):
    """Several beans match a type and neither a primary nor a name picks one."""

    def __init__(self, required: type, candidates: list[str]) -> None:
        self.required = required
        self.candidates = candidates
        msg = (
            f"Expected a single bean of type {required.__name__} but found {len(candidates)}: "
            f"{', '.join(candidates)}"
        )
        super().__init__(msg)


class BeanNotOfRequiredTypeError(ResolutionError):
    pass


class CircularDependencyError(ResolutionError):
    pass


class ContainerClosedError(ResolutionError):
    pass
