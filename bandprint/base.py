"""
Base interface for fingerprinting strategies.
"""

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np


class BaseFingerprinter(ABC):
    """
    Abstract base class for keypoint/hash fingerprinting strategies.

    A strategy turns frequency-domain slices into one keypoint vector per
    slice and folds each keypoint vector into a single integer hash. The
    recognizer and the index only ever see the hashes, so strategies can be
    swapped without touching either of them.
    """

    @abstractmethod
    def determine_keypoints(self, spectra: np.ndarray) -> np.ndarray:
        """
        Extract the keypoints of every time slice.

        Args:
            spectra: Array of shape (n_slices, 2 * chunk_size) holding complex
                     values with interleaved real and imaginary parts

        Returns:
            Integer array of shape (n_slices, n_keypoints)
        """
        pass

    @abstractmethod
    def hash(self, points: Sequence[int]) -> int:
        """
        Combine the keypoints of one time slice into a fingerprint code.

        Args:
            points: Keypoint vector of a single slice

        Returns:
            Non-negative integer hash
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this fingerprinting strategy."""
        pass

    def hash_all(self, keypoints: np.ndarray) -> np.ndarray:
        """Hash every row of a keypoint array."""
        return np.fromiter((self.hash(row) for row in keypoints),
                           dtype=np.uint64, count=len(keypoints))
