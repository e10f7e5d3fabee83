from .crud import Crud, CrudEngine
from .criteria import SimpleCriteria, SqlCondition
from .db import DbSession, SqlAlchemyExecutor, create_executor
from .errors import ConfigurationError, DbCrudError, PersistenceError

__all__ = [
    "Crud",
    "CrudEngine",
    "SimpleCriteria",
    "SqlCondition",
    "DbSession",
    "SqlAlchemyExecutor",
    "create_executor",
    "DbCrudError",
    "ConfigurationError",
    "PersistenceError",
]
