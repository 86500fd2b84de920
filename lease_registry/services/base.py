"""
BaseService -- abstract base for all registry services.

Responsibility:
    Provides the common constructor for every write-side service: a
    SQLAlchemy ``Session`` owned by the caller and an injected ``Clock``.
    Services use ``session.flush()`` -- never ``session.commit()``.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or roll back themselves.  ``LeaseRegistry`` owns
    commit/rollback, which is what makes each public operation atomic.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from lease_registry.db.base import Base
from lease_registry.domain.clock import Clock, SystemClock

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all registry services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide read projections -- those live in ``selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
