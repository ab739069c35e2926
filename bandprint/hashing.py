from typing import List, Sequence, Tuple

import numpy as np

from .base import BaseFingerprinter
from .config import BAND_BOUNDARIES, FUZ_FACTOR, SCAN_START
from .errors import InvalidKeypointsError
from .spectrum import log_magnitudes

# decimal place of each fuzzed keypoint inside the hash: k3·10^8 + k2·10^5 + k1·10^2 + k0
HASH_WEIGHTS = (1, 10 ** 2, 10 ** 5, 10 ** 8)


def _quantize(x: int, fuzz: int = FUZ_FACTOR) -> int:
    """Round down to nearest multiple of fuzz."""
    return x - (x % fuzz)


def band_ranges(boundaries: Sequence[int] = BAND_BOUNDARIES,
                scan_start: int = SCAN_START) -> List[Tuple[int, int]]:
    """
    Half-open bin range [lo, hi) scanned for each band.

    Band 0 covers [0, boundaries[0]], band i covers
    (boundaries[i-1], boundaries[i]]. Only bins in
    [scan_start, boundaries[-1]) are ever scanned, so the ranges are clipped
    to that window; a band left with no bins gets lo == hi.
    """
    stop = boundaries[-1]
    ranges = []
    prev = -1
    for edge in boundaries:
        lo = max(prev + 1, scan_start)
        hi = min(edge + 1, stop)
        ranges.append((lo, max(lo, hi)))
        prev = edge
    return ranges


class BandFingerprinter(BaseFingerprinter):
    """
    Per-slice band keypoints folded into a decimal hash.

    For every slice the strongest log-magnitude of each frequency band becomes
    one keypoint; the first four keypoints, quantized by the fuzz factor, are
    packed into a single integer.
    """

    def __init__(self, boundaries: Sequence[int] = BAND_BOUNDARIES,
                 fuzz_factor: int = FUZ_FACTOR, scan_start: int = SCAN_START):
        if list(boundaries) != sorted(boundaries) or len(set(boundaries)) != len(boundaries):
            raise ValueError(f"Band boundaries must be strictly increasing: {boundaries}")
        if fuzz_factor < 1:
            raise ValueError(f"Fuzz factor must be positive, got {fuzz_factor}")
        self.boundaries = tuple(boundaries)
        self.fuzz_factor = fuzz_factor
        self.scan_start = scan_start
        self._ranges = band_ranges(self.boundaries, scan_start)

    @property
    def name(self) -> str:
        return "Band"

    def determine_keypoints(self, spectra: np.ndarray) -> np.ndarray:
        n_slices = spectra.shape[0]
        keypoints = np.zeros((n_slices, len(self.boundaries)), dtype=np.int64)
        if n_slices == 0:
            return keypoints

        mags = log_magnitudes(spectra, self.scan_start, self.boundaries[-1])
        n_bins = mags.shape[1]
        for band, (lo, hi) in enumerate(self._ranges):
            a = lo - self.scan_start
            b = min(hi - self.scan_start, n_bins)
            if b <= a:
                continue  # nothing scanned in this band
            # magnitudes are >= 0, so an all-silent band floors to 0
            keypoints[:, band] = np.floor(mags[:, a:b].max(axis=1))
        return keypoints

    def hash(self, points: Sequence[int]) -> int:
        if len(points) < 4:
            raise InvalidKeypointsError(
                f"Need at least 4 keypoints to hash, got {len(points)}")
        fuzz = self.fuzz_factor
        return sum(_quantize(int(points[i]), fuzz) * w
                   for i, w in enumerate(HASH_WEIGHTS))

    def hash_all(self, keypoints: np.ndarray) -> np.ndarray:
        keypoints = np.asarray(keypoints, dtype=np.int64)
        if keypoints.ndim != 2 or (len(keypoints) and keypoints.shape[1] < 4):
            raise InvalidKeypointsError(
                f"Need an (n, >=4) keypoint array, got shape {keypoints.shape}")
        k = keypoints[:, :4]
        k = k - (k % self.fuzz_factor)
        weights = np.array(HASH_WEIGHTS, dtype=np.int64)
        return (k * weights).sum(axis=1).astype(np.uint64)
