from typing import Sequence


class BulkUploadError(Exception):
    """Base class for bulk prompt upload failures."""


class BatchRejectedError(BulkUploadError):
    """The whole batch is invalid; nothing was persisted."""


class RowValidationError(BulkUploadError):
    def __init__(self, row: int, missing_fields: Sequence[str]) -> None:
        self.row = row
        self.missing_fields = list(missing_fields)
        super().__init__(
            f"Row {row}: Missing required fields ({', '.join(self.missing_fields)})"
        )


class RecordNotFoundError(BulkUploadError):
    pass


class PermissionDeniedError(BulkUploadError):
    pass


class ThumbnailUnavailableError(BulkUploadError):
    """The prompt has nothing to build a thumbnail from."""


class ThumbnailGenerationFailedError(BulkUploadError):
    pass
