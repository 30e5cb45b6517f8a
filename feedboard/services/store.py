"""Document-style persistence boundary over a SQLAlchemy session.

The service layer talks to the database only through these primitives.
Each ``save``/``remove`` commits on its own; there is no cross-document
transaction, so callers that touch two documents must order the writes
and compensate themselves.
"""

import logging
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from feedboard.errors import ConflictError, UnexpectedError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class DocumentStore:
    """find / find_one / find_many / count / save / remove over one session."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, model: type[ModelT], doc_id: Any) -> ModelT | None:
        """Fetch a document by primary key."""
        return self.db.get(model, doc_id)

    def find_one(self, model: type[ModelT], **criteria: Any) -> ModelT | None:
        """Fetch the first document matching exact-value criteria."""
        return self.db.query(model).filter_by(**criteria).first()

    def find_many(
        self,
        model: type[ModelT],
        order_by: Any = None,
        offset: int = 0,
        limit: int | None = None,
        **criteria: Any,
    ) -> list[ModelT]:
        """Fetch a window of documents matching exact-value criteria."""
        query = self.db.query(model).filter_by(**criteria)
        if order_by is not None:
            if not isinstance(order_by, (list, tuple)):
                order_by = [order_by]
            query = query.order_by(*order_by)
        query = query.offset(max(offset, 0))
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count(self, model: type[ModelT], **criteria: Any) -> int:
        """Count documents matching exact-value criteria."""
        return self.db.query(model).filter_by(**criteria).count()

    def save(self, doc: ModelT) -> ModelT:
        """Insert or update a document and commit.

        Raises:
            ConflictError: a unique constraint was violated.
            UnexpectedError: any other database failure.
        """
        try:
            self.db.add(doc)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Integrity error saving {type(doc).__name__}: {e}")
            raise ConflictError() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save {type(doc).__name__}: {e}")
            raise UnexpectedError() from e
        self.db.refresh(doc)
        return doc

    def remove(self, model: type[ModelT], doc_id: Any) -> bool:
        """Delete a document by primary key. Returns False if it was absent.

        Raises:
            UnexpectedError: the delete could not be committed.
        """
        doc = self.db.get(model, doc_id)
        if doc is None:
            return False
        try:
            self.db.delete(doc)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to remove {model.__name__} {doc_id}: {e}")
            raise UnexpectedError() from e
        return True
