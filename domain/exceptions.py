"""Domain Exceptions

Expected booking outcomes are returned as ``Rejection`` values. These
exceptions are reserved for persistence-level failures.
"""


class DomainException(Exception):
    """Base exception raised from the domain layer"""

    pass


class OverlappingBookingError(DomainException):
    """Conditional insert failed because the resource is already booked for the interval"""

    def __init__(self, resource_id: str, overlapping: int):
        super().__init__(f"Resource {resource_id} has {overlapping} overlapping active booking(s)")
        self.resource_id = resource_id
        self.overlapping = overlapping


class RepositoryUnavailableError(DomainException):
    """Backing store could not be reached"""

    pass
