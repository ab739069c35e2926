"""
Audio decoding adapter.

Turns audio files into the fixed PCM layout consumed by the fingerprinting
core (signed integers, one channel, fixed sample rate) and back into numpy
sample arrays. Decoder failures never leave this module: they are logged and
reported as "no data" (None).
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import librosa
import numpy as np
import soundfile as sf

from .config import AUDIO_PATTERN, PCM_FORMAT, PcmFormat

log = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_audio(path):
    signal, sr = sf.read(path)
    return np.asarray(signal), sr


def to_pcm(signal, sample_rate, pcm_format: PcmFormat = PCM_FORMAT) -> bytes:
    """Mix down, resample and quantize a float signal in [-1, 1] to PCM bytes."""
    signal = np.asarray(signal, dtype=np.float64)
    if signal.ndim > 1:
        # signal is (num_samples, num_channels); transpose to (channels, samples)
        signal = librosa.to_mono(signal.T)

    if sample_rate != pcm_format.sample_rate and len(signal) > 0:
        signal = librosa.resample(signal, orig_sr=sample_rate,
                                  target_sr=pcm_format.sample_rate)

    full_scale = 2 ** (8 * pcm_format.sample_width - 1) - 1
    signal = np.clip(signal, -1.0, 1.0) * full_scale
    return np.round(signal).astype(pcm_format.dtype).tobytes()


def read_audio(path: PathLike) -> Optional[Tuple[np.ndarray, int]]:
    """
    Decode an audio file to a float signal and its sample rate.

    Returns None when the file does not exist or cannot be decoded.
    """
    path = Path(path)
    if not path.is_file():
        log.warning("File does not exist or is a directory: %s", path.name)
        return None
    try:
        return load_audio(path)
    except (RuntimeError, OSError, ValueError) as e:
        # soundfile.LibsndfileError is a RuntimeError
        log.warning("Unable to decode %s, skipping: %s", path.name, e)
        return None


def read_pcm(path: PathLike, pcm_format: PcmFormat = PCM_FORMAT) -> Optional[bytes]:
    """Decode an audio file to PCM bytes, or None if it cannot be read."""
    decoded = read_audio(path)
    if decoded is None:
        return None
    signal, sr = decoded
    try:
        return to_pcm(signal, sr, pcm_format)
    except ValueError as e:
        log.warning("Unable to convert %s, skipping: %s", Path(path).name, e)
        return None


def pcm_to_samples(data: bytes, pcm_format: PcmFormat = PCM_FORMAT) -> np.ndarray:
    """Interpret raw PCM bytes as an array of signed samples."""
    width = pcm_format.sample_width
    usable = len(data) - (len(data) % width)  # ignore a dangling partial sample
    return np.frombuffer(data[:usable], dtype=pcm_format.dtype).astype(np.int16)


def as_samples(buffer, pcm_format: PcmFormat = PCM_FORMAT) -> np.ndarray:
    """Accept PCM bytes or an already decoded sample array."""
    if buffer is None:
        return np.zeros(0, dtype=np.int16)
    if isinstance(buffer, (bytes, bytearray, memoryview)):
        return pcm_to_samples(bytes(buffer), pcm_format)
    return np.asarray(buffer).ravel()


def find_audio_files(folder: PathLike, pattern: str = AUDIO_PATTERN,
                     recursive: bool = False) -> List[Path]:
    folder = Path(folder).expanduser()
    if not folder.is_dir():
        log.warning("Not a directory: %s", folder)
        return []
    paths = folder.rglob(pattern) if recursive else folder.glob(pattern)
    return sorted(p for p in paths if p.is_file())


def cut_audio(signal, sample_rate, clip_length_sec, seed=42):
    rng = np.random.default_rng(seed)
    total_samples = len(signal)
    clip_samples = int(clip_length_sec * sample_rate)
    if clip_samples >= total_samples:
        return signal
    start = int(rng.integers(0, total_samples - clip_samples))
    end = start + clip_samples
    return signal[start:end]


def inject_noise(signal, snr_db, seed=None):
    """
    Add white Gaussian noise to `signal` to get the desired SNR in dB.
    Assumes `signal` is a float numpy array.
    """
    signal = np.asarray(signal, dtype=float)

    signal_power = np.mean(signal ** 2) if signal.size else 0.0
    if signal_power == 0:
        # silent signal, nothing to scale the noise against
        return signal

    noise_power = signal_power / (10 ** (snr_db / 10))
    noise_std = np.sqrt(noise_power)

    rng = np.random.default_rng(seed)
    noise = rng.normal(0.0, noise_std, size=signal.shape)
    return signal + noise
