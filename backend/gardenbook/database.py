import os
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from gardenbook.config import settings


def make_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        path = url.split("sqlite:///", 1)[-1]
        if path and path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    return create_engine(url, connect_args=connect_args)


engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None):
    """Create the local table if missing (migrations handle upgrades)."""
    from gardenbook.models import LocalRecord

    Base.metadata.create_all(bind=bind or engine, tables=[LocalRecord.__table__])
