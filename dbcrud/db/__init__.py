from .executor import DbExecutor, SqlAlchemyExecutor, create_executor
from .helpers import conditions_to_parameters, render_conditions
from .session import DbSession

__all__ = [
    "DbExecutor",
    "DbSession",
    "SqlAlchemyExecutor",
    "create_executor",
    "render_conditions",
    "conditions_to_parameters",
]
