"""
Error taxonomy for the provisioning pipeline.

Three kinds of failure are distinguished internally even though the HTTP
layer collapses all of them into one generic response:

- ``ReportInputError``        malformed or incomplete report input
- ``RemoteServiceError``      a Sheets / Drive call failed
- ``PermissionInvariantError`` the ownership handoff found an unexpected
                               permission set
"""

from __future__ import annotations

from typing import Optional


class ProvisioningError(Exception):
    """Base error for every pipeline failure.

    ``state`` is set by the provisioner to the pipeline state that was being
    entered when the error was raised.
    """

    kind = "internal"
    state: Optional[str] = None


class ReportInputError(ProvisioningError):
    """The inbound report is missing sections or fields."""

    kind = "input"


class LayoutError(ReportInputError):
    """Report content does not fit the fixed sheet layout."""

    kind = "layout"


class RemoteServiceError(ProvisioningError):
    """A remote Sheets or Drive operation failed.

    Parameters
    ----------
    message : str
        Human-readable description.
    operation : str
        Name of the remote operation, e.g. ``"spreadsheets.create"``.
    status : int | None
        HTTP status code when the service returned one.
    """

    kind = "remote"

    def __init__(self, message: str, operation: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.operation = operation
        self.status = status


class PermissionInvariantError(ProvisioningError):
    """The permission set did not match what the handoff expects."""

    kind = "permission"

    def __init__(self, message: str, permissions: Optional[list[dict]] = None):
        super().__init__(message)
        self.permissions = permissions or []
