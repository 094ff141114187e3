import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from salonbooks.exceptions import StorageError
from salonbooks.repositories import (
    AccountRepository, CatalogRepository, JournalRepository, DocumentRepository,
    InventoryRepository, ReconciliationRepository, IdempotencyRepository
)

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    One database transaction plus the repositories bound to it.

    Usage:
        with uow:
            uow.accounts.add(...)
            uow.journal.add_entry(...)

    Leaving the block normally commits; any exception rolls everything back.
    Integrity errors from the database surface as StorageError.
    """

    def __init__(self, session: Session):
        self.session = session
        self.accounts = AccountRepository(session)
        self.catalog = CatalogRepository(session)
        self.journal = JournalRepository(session)
        self.documents = DocumentRepository(session)
        self.inventory = InventoryRepository(session)
        self.reconciliations = ReconciliationRepository(session)
        self.idempotency = IdempotencyRepository(session)

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.rollback()
            if isinstance(exc, IntegrityError):
                logger.warning(f"Integrity error rolled back: {exc.orig}")
                raise StorageError(str(exc.orig)) from exc
            return False

        try:
            self.commit()
        except IntegrityError as e:
            self.rollback()
            logger.warning(f"Integrity error on commit: {e.orig}")
            raise StorageError(str(e.orig)) from e
        return False

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()

    def refresh(self, obj):
        self.session.refresh(obj)
        return obj
