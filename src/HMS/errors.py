"""
Error taxonomy for the hospital record keeper.

Every failure raised by the core derives from `HospitalError` and falls into
one of four families:
- ValidationError: bad id/age/room/day/shift, the operation is a no-op
- NotFoundError:   id lookup miss
- ConflictError:   duplicate id, room full, slot taken, doctor at capacity
- StorageError:    filesystem failure during save/backup/restore
"""


class HospitalError(Exception):
    """Base class for all record keeper errors."""


class ValidationError(HospitalError, ValueError):
    """Raised when an input value is outside its allowed range."""


class NotFoundError(HospitalError, LookupError):
    """Raised when an identifier does not match any record."""


class ConflictError(HospitalError):
    """Raised when an operation collides with existing state."""


class StorageError(HospitalError):
    """Raised when persisted artifacts cannot be written or copied."""


# Lookup
class PatientNotFoundError(NotFoundError):
    pass


class UnknownDoctorError(NotFoundError):
    pass


class BackupNotFoundError(NotFoundError):
    pass


# Conflicts
class DuplicateIDError(ConflictError):
    pass


class RoomUnavailableError(ConflictError):
    pass


class AlreadyDischargedError(ConflictError):
    pass


class DoctorAtCapacityError(ConflictError):
    pass


class SlotTakenError(ConflictError):
    pass


class DoctorHasShiftsError(ConflictError):
    pass


# Validation
class InvalidAgeError(ValidationError):
    pass


class InvalidFieldError(ValidationError):
    pass


class DayOutOfRangeError(ValidationError):
    pass


class ShiftOutOfRangeError(ValidationError):
    pass


# a non-positive id can never be added, so it is also a DuplicateIDError
class InvalidIDError(ValidationError, DuplicateIDError):
    pass


# a non-positive room never has a free bed
class InvalidRoomError(ValidationError, RoomUnavailableError):
    pass
