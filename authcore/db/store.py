"""Storage capability interface and its SQLAlchemy adapter.

Repositories are written only against :class:`Store`. Filters are keyword
arguments, either ``field=value`` for equality or ``field__op=value`` with
``op`` one of ``ne``, ``gt``, ``gte``, ``lt``, ``lte``, ``in``, ``isnull``.
``order_by`` takes a field name, prefixed with ``-`` for descending order.

Every mutation is a single statement committed immediately, so callers get
per-row atomicity from the database and nothing else.
"""

import math
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Type

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from authcore.core.exceptions import DuplicateRecordError, StorageError

_OPERATORS = {
    "eq": lambda col, value: col == value,
    "ne": lambda col, value: col != value,
    "gt": lambda col, value: col > value,
    "gte": lambda col, value: col >= value,
    "lt": lambda col, value: col < value,
    "lte": lambda col, value: col <= value,
    "in": lambda col, value: col.in_(value),
    "isnull": lambda col, value: col.is_(None) if value else col.isnot(None),
}


@dataclass
class Page:
    """One page of results plus pagination metadata."""

    items: List[Any] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def has_next(self) -> bool:
        return self.page * self.page_size < self.total

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def pagination(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_prev": self.has_prev,
        }


class Store(ABC):
    """Backend-neutral persistence operations used by the repositories."""

    @abstractmethod
    def find_one(self, model: Type, **filters) -> Optional[Any]:
        ...

    @abstractmethod
    def find_many(
        self, model: Type, order_by: Optional[str] = None, limit: Optional[int] = None, **filters
    ) -> List[Any]:
        ...

    @abstractmethod
    def create(self, model: Type, **values) -> Any:
        ...

    @abstractmethod
    def update(self, model: Type, values: Dict[str, Any], **filters) -> int:
        """Update every matching row; returns the affected-row count."""

    @abstractmethod
    def delete(self, model: Type, **filters) -> int:
        """Delete every matching row; returns the affected-row count."""

    @abstractmethod
    def count_and_page(
        self,
        model: Type,
        page: int = 1,
        page_size: int = 20,
        order_by: Optional[str] = None,
        **filters,
    ) -> Page:
        ...


class SqlStore(Store):
    """:class:`Store` over a SQLAlchemy session (SQLite, MySQL, PostgreSQL)."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateRecordError(str(e.orig)) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(str(e)) from e

    @staticmethod
    def _criteria(model: Type, filters: Dict[str, Any]) -> list:
        criteria = []
        for key, value in filters.items():
            name, _, op = key.partition("__")
            column = getattr(model, name)
            criteria.append(_OPERATORS[op or "eq"](column, value))
        return criteria

    @staticmethod
    def _ordering(model: Type, order_by: Optional[str]):
        if not order_by:
            return None
        if order_by.startswith("-"):
            return getattr(model, order_by[1:]).desc()
        return getattr(model, order_by).asc()

    def _query(self, model: Type, order_by: Optional[str], filters: Dict[str, Any]):
        query = self.db.query(model).filter(*self._criteria(model, filters))
        ordering = self._ordering(model, order_by)
        if ordering is not None:
            query = query.order_by(ordering)
        return query

    def find_one(self, model: Type, **filters) -> Optional[Any]:
        with self._translate_errors():
            return self._query(model, None, filters).first()

    def find_many(
        self, model: Type, order_by: Optional[str] = None, limit: Optional[int] = None, **filters
    ) -> List[Any]:
        with self._translate_errors():
            query = self._query(model, order_by, filters)
            if limit is not None:
                query = query.limit(limit)
            return query.all()

    def create(self, model: Type, **values) -> Any:
        with self._translate_errors():
            obj = model(**values)
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
            return obj

    def update(self, model: Type, values: Dict[str, Any], **filters) -> int:
        with self._translate_errors():
            count = (
                self.db.query(model)
                .filter(*self._criteria(model, filters))
                .update(values, synchronize_session=False)
            )
            self.db.commit()
            return count

    def delete(self, model: Type, **filters) -> int:
        with self._translate_errors():
            count = (
                self.db.query(model)
                .filter(*self._criteria(model, filters))
                .delete(synchronize_session=False)
            )
            self.db.commit()
            return count

    def count_and_page(
        self,
        model: Type,
        page: int = 1,
        page_size: int = 20,
        order_by: Optional[str] = None,
        **filters,
    ) -> Page:
        with self._translate_errors():
            query = self._query(model, order_by, filters)
            total = query.count()
            items = query.offset((page - 1) * page_size).limit(page_size).all()
        return Page(items=items, total=total, page=page, page_size=page_size)
