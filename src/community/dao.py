from abc import ABC, abstractmethod

from beanbind import primary, repository


class AlphaDao(ABC):
    """Data access object for the alpha table."""

    @abstractmethod
    def select(self) -> str: ...


@repository("alpha_hibernate")
class HibernateAlphaDao(AlphaDao):
    def select(self) -> str:
        return "Hibernate"


# Wins by-type lookups of AlphaDao; the Hibernate one stays reachable by name.
@primary
@repository
class MyBatisAlphaDao(AlphaDao):
    def select(self) -> str:
        return "MyBatis"
