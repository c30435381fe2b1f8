"""
Domain exceptions.

Services raise these; jobportal.main maps each one to an HTTP status
(see EXCEPTION_STATUS_CODES) so route handlers stay thin.
"""


class PortalError(Exception):
    """Base class for all job portal domain errors."""

    def __init__(self, message: str = None):
        self.message = message or self.__class__.__doc__
        super().__init__(self.message)


class NotFound(PortalError):
    """Requested record does not exist."""


class AlreadyExists(PortalError):
    """Record already exists."""


class Unauthorized(PortalError):
    """No session or wrong role for this operation."""


class StoreUnavailable(PortalError):
    """Backing store could not complete the request."""


class InvalidTransition(PortalError):
    """Approval status change is not permitted."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move approval status from '{current}' to '{target}'")


class AllocationError(PortalError):
    """Membership number could not be allocated."""


class AllocationConflict(AllocationError):
    """Membership number collided with an existing one."""


class MalformedIdentifier(AllocationError):
    """Last membership number of the year cannot be parsed."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Existing membership number '{value}' is malformed; refusing to allocate")


class AllocatorStoreUnavailable(AllocationError, StoreUnavailable):
    """Backing store failed while allocating a membership number."""


EXCEPTION_STATUS_CODES = {
    AllocatorStoreUnavailable: 503,
    NotFound: 404,
    AlreadyExists: 409,
    Unauthorized: 403,
    InvalidTransition: 409,
    AllocationConflict: 409,
    MalformedIdentifier: 500,
    StoreUnavailable: 503,
    AllocationError: 500,
    PortalError: 500,
}


def status_code_for(exc: PortalError) -> int:
    """Most specific status code for an exception (walks the MRO)."""
    for cls in type(exc).__mro__:
        if cls in EXCEPTION_STATUS_CODES:
            return EXCEPTION_STATUS_CODES[cls]
    return 500
