import logging
from sqlalchemy.orm import Session


class BaseService:
    """Common plumbing for services bound to a request-scoped session."""

    def __init__(self, db: Session):
        self.db = db
        self._logger = logging.getLogger(self.__class__.__module__)
