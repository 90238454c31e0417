"""
Exception taxonomy.

PreconditionError covers misconfiguration caught at construction time.
The ExportError family is raised out of the export stream and aborts the
remaining assets; files already written are left for the caller.
"""


class CropBatchError(Exception):
    """Base class for all crop-batch errors."""


class PreconditionError(CropBatchError, ValueError):
    """Invalid configuration, e.g. an empty ratio list or out-of-range index."""


class ExportError(CropBatchError):
    """Fatal failure while exporting one asset."""

    def __init__(self, asset_id: str, message: str):
        super().__init__(f"{message} (asset {asset_id})")
        self.asset_id = asset_id


class MissingSourceFileError(ExportError):
    """The asset library could not provide the original file."""

    def __init__(self, asset_id: str):
        super().__init__(asset_id, "Original file is unavailable")


class TransformError(ExportError):
    """Sampling or cropping failed."""
