from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from trainbook.core.config import settings


class Base(DeclarativeBase):
    pass


engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True, echo=settings.SQL_ECHO)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

