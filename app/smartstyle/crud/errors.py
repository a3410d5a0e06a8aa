from __future__ import annotations


class StoreError(Exception):
    """The store rejected a request. `message` is safe to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PanelError(Exception):
    """An error surfaced by a panel action. Never fatal to the panel."""

    action = "Action"

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def __str__(self) -> str:
        return f"{self.action} failed: {self.message}"


class LoadError(PanelError):
    action = "Load"


class SaveError(PanelError):
    action = "Save"


class DeleteError(PanelError):
    action = "Delete"


class ResolutionError(PanelError):
    action = "Loading options"
