# assessment_engine/db/upsert.py
from typing import Any, Sequence

from sqlalchemy.orm import Session


def insert_or_ignore(
    db: Session,
    model: Any,
    values: dict,
    conflict_columns: Sequence[str],
) -> int:
    """
    INSERT ... ON CONFLICT DO NOTHING for the current dialect.

    Returns the number of inserted rows (0 when the row already existed).
    Does not commit.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"insert_or_ignore not supported on {dialect}")

    stmt = (
        insert(model)
        .values(**values)
        .on_conflict_do_nothing(index_elements=list(conflict_columns))
    )
    result = db.execute(stmt)
    return result.rowcount
