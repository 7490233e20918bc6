"""Error types raised by the search core and its collaborators."""


class HomefinderError(Exception):
    """Base exception for the homefinder backend."""


class QueryFailedError(HomefinderError):
    """A read against the persistent store failed."""


class ImageResolutionError(HomefinderError):
    """An image reference could not be turned into a displayable URL."""
