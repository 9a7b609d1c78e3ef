"""
errors.py — Exception taxonomy shared by repositories, controllers and routes.

- CollaboratorUnavailable: no record store configured or reachable
- FetchFailure: the record store answered a read with success=false
- PersistenceError: a create/update/delete was rejected
- NotFoundError: update of an id the local store does not hold
- ReferentialIntegrityError: farm delete while crops/tasks/expenses still point at it
- ValidationError: form input rejected before any record store call
"""


class FarmLogError(Exception):
    """Base class for all application errors."""


class CollaboratorUnavailable(FarmLogError):
    pass


class FetchFailure(FarmLogError):
    pass


class PersistenceError(FarmLogError):
    """A mutation was rejected by the record store.

    `failures` holds one dict per rejected record:
    {'message': str, 'errors': [{'fieldLabel': str, 'message': str}, ...]}
    """

    def __init__(self, message, failures=None):
        super().__init__(message)
        self.message = message
        self.failures = failures or []


class NotFoundError(PersistenceError):
    pass


class ReferentialIntegrityError(PersistenceError):
    def __init__(self, message, dependents=None):
        super().__init__(message)
        self.dependents = dependents or {}


class ValidationError(FarmLogError):
    """Per-field validation messages, keyed by attribute name."""

    def __init__(self, errors):
        super().__init__("Invalid input: " + ", ".join(sorted(errors)))
        self.errors = errors
