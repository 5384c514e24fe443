from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase


def make_engine(url: str, echo: bool = False) -> Engine:
    return create_engine(url, pool_pre_ping=True, echo=echo, future=True)


def make_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


class Base(DeclarativeBase):
    pass
