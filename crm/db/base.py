from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base ORM class for all clinic models."""
    pass
