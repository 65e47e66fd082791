"""Generic table access shared by the chat and matching repositories."""

from typing import Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from reddoor.db.base import Base

RowT = TypeVar("RowT", bound=Base)

_OPERATORS = {
    "eq": lambda column, value: column == value,
    "ne": lambda column, value: column != value,
    "lt": lambda column, value: column < value,
    "lte": lambda column, value: column <= value,
    "gt": lambda column, value: column > value,
    "gte": lambda column, value: column >= value,
}


class BaseRepository(Generic[RowT]):
    """
    Row-level helpers over one mapped table.

    Keyword conditions read ``column__op=value`` where op is one of eq, ne,
    lt, lte, gt, gte; ``column=value`` is shorthand for eq. Writes flush but
    never commit: the UnitOfWork owns the transaction.
    """

    def __init__(self, model: Type[RowT], session: AsyncSession):
        self.model = model
        self.session = session

    def _where(self, conditions: dict) -> list:
        clauses = []
        for key, value in conditions.items():
            column_name, _, op = key.partition("__")
            op = op or "eq"
            compare = _OPERATORS.get(op)
            if compare is None:
                raise ValueError(f"Unknown filter operator: {op}")
            clauses.append(compare(getattr(self.model, column_name), value))
        return clauses

    async def add_all(self, rows: Iterable[RowT]) -> int:
        """Stage many rows in one flush. Returns the number added."""
        staged = list(rows)
        self.session.add_all(staged)
        await self.session.flush()
        return len(staged)

    async def get_all(self, order_by: Optional[str] = None) -> List[RowT]:
        stmt = select(self.model)
        if order_by is not None:
            stmt = stmt.order_by(getattr(self.model, order_by))
        return list((await self.session.execute(stmt)).scalars())

    async def delete_all(self, **conditions) -> int:
        """Delete matching rows (every row when no condition is given).

        Returns:
            Number of rows deleted
        """
        stmt = delete(self.model).where(*self._where(conditions))
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount or 0  # type: ignore[attr-defined]

