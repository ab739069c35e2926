"""
Band-keypoint audio fingerprinting.

Recognition follows a simple pipeline:
1. Slice the PCM signal into fixed-size chunks and FFT each chunk
2. Keep the strongest log-magnitude of five frequency bands per chunk
3. Fold four of those keypoints into one fuzzy integer hash per chunk
4. Match hashes against an index and vote on the time offset per song
"""

from .config import BAND_BOUNDARIES, CHUNK_SIZE, FUZ_FACTOR, PCM_FORMAT, PcmFormat
from .db import DataPoint, FingerprintIndex, load_index, save_index
from .errors import (BandprintError, IndexConsistencyError, IndexFormatError,
                     InvalidKeypointsError)
from .hashing import BandFingerprinter
from .recognizer import IndexedSong, Recognizer, SongMatch
from .spectrum import to_frequency_domain

__all__ = [
    'Recognizer', 'SongMatch', 'IndexedSong',
    'FingerprintIndex', 'DataPoint', 'load_index', 'save_index',
    'BandFingerprinter', 'to_frequency_domain',
    'BandprintError', 'InvalidKeypointsError', 'IndexConsistencyError', 'IndexFormatError',
    'PcmFormat', 'PCM_FORMAT', 'CHUNK_SIZE', 'BAND_BOUNDARIES', 'FUZ_FACTOR',
]
