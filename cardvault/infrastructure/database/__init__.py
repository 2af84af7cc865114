from .async_db import build_engine, build_session_factory, create_db_and_tables
from .transaction import SQLAlchemyTransactionManager

__all__ = [
    "SQLAlchemyTransactionManager",
    "build_engine",
    "build_session_factory",
    "create_db_and_tables",
]
