# marketplace/errors.py


class StoreError(Exception):
    """Base class for every error the storefront reports to its callers."""


class InputError(StoreError):
    """A user-correctable form error, shown inline next to the form."""


class NotFoundError(StoreError):
    pass


class NotLoggedInError(StoreError):
    pass
