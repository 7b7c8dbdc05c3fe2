from __future__ import annotations

from typing import Optional


class AppError(Exception):
    """Base application error"""


class ConfigError(AppError):
    """Missing or invalid configuration"""


class BatchLimitExceeded(AppError):
    """More files submitted than the tier allows in one batch"""


class FeatureLocked(AppError):
    """Request uses an effect the current tier does not include"""


class ProcessingError(AppError):
    """A pipeline stage failed; terminal for the current run"""

    code = "PROCESSING_ERROR"

    def __init__(self, message: str, *, stage: Optional[str] = None) -> None:
        super().__init__(message)
        self.stage = stage


class UnsupportedFormat(ProcessingError):
    """Payload is not a decodable JPEG/PNG/WebP raster"""

    code = "UNSUPPORTED_FORMAT"


class PayloadTooLarge(ProcessingError):
    """Source exceeds the tier's max bytes (or the decoder's pixel guard)"""

    code = "PAYLOAD_TOO_LARGE"


class InvalidDimensions(ProcessingError):
    """Zero/negative source or computed dimensions"""

    code = "INVALID_DIMENSIONS"


class CorruptBuffer(ProcessingError):
    """PixelBuffer invariant violated mid-pipeline"""

    code = "CORRUPT_BUFFER"


class EncodeFailure(ProcessingError):
    """Encoder produced no output"""

    code = "ENCODE_FAILURE"


class ProcessingTimeout(ProcessingError):
    """A stage exceeded its wall-clock budget"""

    code = "PROCESSING_TIMEOUT"
