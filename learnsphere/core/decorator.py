import logging
from functools import wraps

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)


class DBException(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def db_exception(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except IntegrityError:
            # Usually a duplicate entry or a dangling foreign key
            raise DBException("Duplicate entry: already exists", 409)
        except OperationalError as e:
            logger.error(f"Database unavailable in {func.__name__}: {e}")
            raise DBException("Database temporarily unavailable", 503)
        except SQLAlchemyError as e:
            logger.error(f"Database error in {func.__name__}: {e}")
            raise DBException("Database error occurred", 500)

    return wrapper
