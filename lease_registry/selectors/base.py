"""
Module: lease_registry.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
    Selectors are the read side of the registry: structured access to
    properties and complaints without mutation capability.
Architecture position: Registry > Selectors.  May import from db/, models/
    and domain/dtos.  MUST NOT import from services/ or the facade.

Invariants enforced:
    - Read-only access: selectors MUST NOT call session.add(),
      session.delete(), session.commit(), or session.flush().
    - DTO return convention: selectors return frozen dataclasses, never ORM
      instances.
    - Session ownership: the caller owns the session and its transaction.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from lease_registry.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only
        queries, and return DTOs.  They MUST NOT mutate any data.
    """

    def __init__(self, session: Session):
        self.session = session
