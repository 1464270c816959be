from sqlalchemy.orm import Session
from sqlalchemy.dialects import postgresql, sqlite


def dialect_insert(db: Session, model):
    """
    INSERT construct supporting ON CONFLICT for the session's backend.

    Postgres in production, SQLite in tests; both accept the same
    on_conflict_do_update / on_conflict_do_nothing arguments.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Upserts are not supported on {dialect}")
