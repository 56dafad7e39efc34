"""
BaseService -- abstract base for services that write through a Session.

Responsibility:
    Provides the common constructor and session-handling contract for every
    service that persists results.  Services receive a SQLAlchemy ``Session``
    and use ``session.flush()`` -- never ``session.commit()``.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's transaction
      and never commit or roll back themselves.  The caller (session_scope,
      recompute_harvest_financials, or a test harness) owns commit/rollback.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for write-side services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session):
        self.session = session
