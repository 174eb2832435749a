"""Exceptions raised by calloutsync."""


class CalloutSyncError(Exception):
    pass


class AlreadyExistsError(CalloutSyncError):
    """Creating a folder or document that is already there."""

    def __init__(self, path: str):
        super().__init__(f"{path} already exists")
        self.path = path


class SetupError(CalloutSyncError):
    """A master document or folder path is taken by the wrong kind of entry."""

    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path


class NotAFileError(SetupError):
    def __init__(self, path: str):
        super().__init__(
            path, f'"{path}" exists but is not a file. Rename or remove it so it can be used as a master.'
        )


class NotAFolderError(SetupError):
    def __init__(self, path: str):
        super().__init__(
            path, f'"{path}" exists but is not a folder. Fix it or set master_folder = "" in the config.'
        )


class SyncError(CalloutSyncError):
    """One or more master updates failed during a sync pass."""

    def __init__(self, path: str, failed: list[str]):
        super().__init__(f"Sync of {path} failed for: {', '.join(failed)}")
        self.path = path
        self.failed = failed


class OutsideVaultError(CalloutSyncError):
    """A document path that resolves outside the vault root."""

    def __init__(self, path: str):
        super().__init__(f"{path} is outside the vault")
        self.path = path
