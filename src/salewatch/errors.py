"""Exception taxonomy for the ingestion pipeline.

Learn: None of these are fatal. The feed worker catches FetchError and
ResolutionError itself, and the dispatch queue catches SendError per task.
Only a bad configuration at startup stops the process.
"""

from typing import Optional


class SalewatchError(Exception):
    pass


class FetchError(SalewatchError):
    """The activity source was unreachable or returned something unusable."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ResolutionError(SalewatchError):
    """Asset metadata could not be looked up."""


class SendError(SalewatchError):
    """A destination platform rejected or failed a send."""

    def __init__(self, platform: str, message: str):
        super().__init__(f"{platform}: {message}")
        self.platform = platform
