from typing import Optional


class ContentLoadError(Exception):
    """
    Raised when a content collection cannot be fetched or parsed as a whole.
    Individual bad records never raise; they are dropped and reported.
    """
    def __init__(self, content_type: str, cause: Optional[BaseException] = None):
        self.content_type = content_type
        self.cause = cause
        message = f"Failed to load {content_type}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class SearchIndexNotReadyError(RuntimeError):
    """Raised when indexes are built before the content loader has initialized."""
