from __future__ import annotations


class AdminDataError(Exception):
    """Base class for failures raised by the admin content toolkit."""


class StorageError(AdminDataError):
    pass


class StorageQuotaExceededError(StorageError):
    pass


class StorageUnavailableError(StorageError):
    pass


class ImageStorageError(AdminDataError):
    pass


class MigrationError(AdminDataError):
    pass


class MigrationPathError(MigrationError):
    """No chain of migration rules leads from the declared version to the target."""

    def __init__(self, from_version: str, to_version: str, reached: str) -> None:
        self.from_version = from_version
        self.to_version = to_version
        self.reached = reached
        msg = (
            f"No migration path from version {from_version} to {to_version} "
            f"(stopped at {reached})"
        )
        super().__init__(msg)
