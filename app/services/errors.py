from __future__ import annotations


class AnalysisInputError(ValueError):
    """Client-side problem with the upload. Never cached, never retried."""

    def __init__(self, message: str, *, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class NoFileError(AnalysisInputError):
    def __init__(self, message: str = "No file uploaded"):
        super().__init__(message)


class UnsupportedFileTypeError(AnalysisInputError):
    def __init__(self, message: str = "Invalid file type. Only PDF and DOCX files are allowed."):
        super().__init__(message)


class UploadTooLargeError(AnalysisInputError):
    def __init__(self, max_bytes: int):
        super().__init__(
            f"File too large. Maximum allowed size is {max_bytes // (1024 * 1024)} MB.",
            status_code=413,
        )


class EmptyDocumentError(AnalysisInputError):
    def __init__(self, message: str = "Resume text is empty. Cannot analyze an empty document."):
        super().__init__(message)


class ExtractionError(AnalysisInputError):
    pass


class AnalysisServiceError(RuntimeError):
    pass


class AnalysisUnavailableError(AnalysisServiceError):
    pass


class MalformedAnalysisResponseError(AnalysisServiceError):
    pass
