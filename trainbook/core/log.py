import logging

from trainbook.core.config import settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)
    # SQL echo goes through the sqlalchemy.engine logger; keep it quiet unless asked for
    if not settings.SQL_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
