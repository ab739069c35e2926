"""
Exceptions raised by the fingerprinting core.
"""


class BandprintError(Exception):
    """Base class for all bandprint errors."""


class InvalidKeypointsError(BandprintError, ValueError):
    """A keypoint vector is too short to be hashed."""


class IndexConsistencyError(BandprintError):
    """An occurrence references a song that is not registered in the index."""


class IndexFormatError(BandprintError):
    """An index snapshot has an unknown version or a malformed payload."""
