from contextlib import asynccontextmanager
import logging

from pymongo.errors import OperationFailure, PyMongoError

logger = logging.getLogger(__name__)

# Server error codes for authorization failures (Unauthorized, Atlas AtlasError)
PERMISSION_ERROR_CODES = {13, 8000}


class MarketplaceError(Exception):
    """Base class for failures of a single user operation"""
    status_code = 500
    retryable = False

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail or self.__class__.__name__


class Unauthenticated(MarketplaceError):
    """No logged-in actor; the caller should redirect to login"""
    status_code = 401


class NotFound(MarketplaceError):
    status_code = 404


class InvalidNotification(MarketplaceError):
    """Confirmation attempted on a notification without confirm action metadata"""
    status_code = 400


class InvalidQuantity(MarketplaceError):
    status_code = 400


class InvalidPaymentMethod(MarketplaceError):
    status_code = 400


class TransactionConflict(MarketplaceError):
    """Atomic transaction failed after retries; the user may retry manually"""
    status_code = 409
    retryable = True


class PermissionDenied(MarketplaceError):
    status_code = 403


def translate_store_error(error: PyMongoError) -> MarketplaceError:
    """Map a raw driver error onto the marketplace error taxonomy"""
    if isinstance(error, OperationFailure) and error.code in PERMISSION_ERROR_CODES:
        return PermissionDenied("The document store rejected this operation")
    return TransactionConflict("Could not complete the operation. Please try again.")


@asynccontextmanager
async def translate_store_errors(operation: str):
    """Convert store-level exceptions raised inside the block into MarketplaceError"""
    try:
        yield
    except PyMongoError as e:
        logger.error(f"{operation} failed: {str(e)}")
        raise translate_store_error(e) from e
