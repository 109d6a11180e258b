from datetime import datetime

from beanbind import bean, configuration


class SimpleDateFormat:
    """Formats datetimes with a fixed strftime pattern."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern

    def format(self, moment: datetime) -> str:
        return moment.strftime(self.pattern)

    def __repr__(self) -> str:
        return f"SimpleDateFormat({self.pattern!r})"


@configuration
class AlphaConfig:
    """Beans for classes that are not decorated themselves."""

    @bean
    def simple_date_format(self) -> SimpleDateFormat:
        return SimpleDateFormat("%Y-%m-%d %H:%M:%S")
