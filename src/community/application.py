"""Bootstrap of the demonstration context."""

import logging
from datetime import datetime

from beanbind import ApplicationContext

from .config import SimpleDateFormat
from .dao import AlphaDao
from .service import AlphaService


logger = logging.getLogger(__name__)


def create_application_context() -> ApplicationContext:
    """Scan the whole `community` package and start the context."""
    return ApplicationContext(__package__)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    with create_application_context() as context:
        print(context)  # noqa: T201

        # by type: the primary repository
        print(context.get_bean(AlphaDao).select())  # noqa: T201
        # by name: the qualified one
        print(context.get_bean("alpha_hibernate", AlphaDao).select())  # noqa: T201

        # prototype: two lookups, two instances
        print(context.get_bean(AlphaService))  # noqa: T201
        print(context.get_bean(AlphaService))  # noqa: T201

        date_format = context.get_bean(SimpleDateFormat)
        print(date_format.format(datetime.now()))  # noqa: T201

    logger.info("Context closed")
