# ---------- CONFIG ---------- #

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class PcmFormat:
    """Layout of the raw PCM buffers handed to the fingerprinting core."""
    sample_rate: int = 44100
    sample_width: int = 1       # bytes per sample: 1 (8-bit) or 2 (16-bit)
    byteorder: str = "big"      # only matters for 16-bit samples

    @property
    def dtype(self) -> str:
        if self.sample_width == 1:
            return "i1"
        if self.sample_width == 2:
            return (">" if self.byteorder == "big" else "<") + "i2"
        raise ValueError(f"Unsupported sample width: {self.sample_width}")


# signed 8-bit mono at 44.1 kHz
PCM_FORMAT = PcmFormat()

CHUNK_SIZE = 4096  # samples per FFT slice, no overlap

# Upper edges of the five keypoint bands (in FFT bin indices).
# Band 0 is [0, 40], band i is (BAND_BOUNDARIES[i-1], BAND_BOUNDARIES[i]].
BAND_BOUNDARIES = (40, 80, 120, 180, 300)
SCAN_START = 40  # bins below this never update a band

FUZ_FACTOR = 2  # absorb small variations in magnitude: 13 → 12, 11 → 10, etc.

AUDIO_PATTERN = "*.mp3"
INDEX_PATH = os.environ.get("BANDPRINT_INDEX_PATH", "fingerprints/index.pkl")
N_JOBS = int(os.environ.get("BANDPRINT_JOBS", "1"))
TOP_RESULTS = 10
