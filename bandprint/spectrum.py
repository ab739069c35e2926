import numpy as np
import scipy.fft

from .config import CHUNK_SIZE


def to_frequency_domain(samples, chunk_size: int = CHUNK_SIZE) -> np.ndarray:
    """
    Slice `samples` into non-overlapping chunks and FFT each one.

    The trailing partial chunk is dropped (no zero padding) and no window is
    applied. Each row of the result holds the complex spectrum of one chunk
    with real and imaginary parts interleaved:

        spectra[t, 2*k]     -> Re(X_t[k])
        spectra[t, 2*k + 1] -> Im(X_t[k])

    Returns:
        float64 array of shape (len(samples) // chunk_size, 2 * chunk_size)
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    samples = np.asarray(samples, dtype=np.float64).ravel()
    n_slices = len(samples) // chunk_size
    spectra = np.empty((n_slices, 2 * chunk_size), dtype=np.float64)
    if n_slices == 0:
        return spectra

    chunks = samples[:n_slices * chunk_size].reshape(n_slices, chunk_size)
    fft = scipy.fft.fft(chunks, axis=1)
    spectra[:, 0::2] = fft.real
    spectra[:, 1::2] = fft.imag
    return spectra


def log_magnitudes(spectra: np.ndarray, start: int, stop: int) -> np.ndarray:
    """ln(|X[k]| + 1) for bins start..stop-1 of every slice."""
    stop = min(stop, spectra.shape[1] // 2)
    if stop <= start:
        return np.zeros((spectra.shape[0], 0), dtype=np.float64)
    re = spectra[:, 2 * start:2 * stop:2]
    im = spectra[:, 2 * start + 1:2 * stop:2]
    return np.log(np.sqrt(re * re + im * im) + 1)
