class PushInstallError(Exception):
    """Base class for errors that stop the whole batch."""


class PreconditionError(PushInstallError):
    """Inputs are unusable; raised before any host is contacted."""


class ConfirmationDeclined(PushInstallError):
    """The operator answered no to the confirmation prompt."""
