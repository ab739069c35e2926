"""Shared fixtures for bandprint tests."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest
import soundfile as sf

from bandprint.config import CHUNK_SIZE, PcmFormat
from bandprint.recognizer import Recognizer

PCM16 = PcmFormat(sample_rate=44100, sample_width=2, byteorder="little")

# one tone per keypoint band
TONE_BINS = (40, 60, 100, 150, 250)


def make_song(seed, n_chunks=40, chunk_size=CHUNK_SIZE):
    """
    Int16 signal made of chunk-long blocks of pure tones.

    Every block holds one cosine per band, exactly periodic in the chunk, with
    a random amplitude, so each block gets its own keypoints.
    """
    rng = np.random.default_rng(seed)
    n = np.arange(chunk_size)
    blocks = []
    for _ in range(n_chunks):
        amps = rng.uniform(50, 6000, size=len(TONE_BINS))
        block = sum(a * np.cos(2 * np.pi * k * n / chunk_size)
                    for a, k in zip(amps, TONE_BINS))
        blocks.append(block)
    return np.round(np.concatenate(blocks)).astype(np.int16)


def write_song(path, samples, sample_rate=44100):
    sf.write(str(path), np.asarray(samples, dtype=np.float64) / 32768.0,
             sample_rate, subtype="PCM_16")
    return path


@pytest.fixture(scope="session")
def songs():
    return {name: make_song(seed) for seed, name in enumerate(["alpha", "bravo", "charlie"])}


@pytest.fixture
def recognizer(songs):
    """16-bit recognizer with the three synthetic songs indexed in order."""
    rec = Recognizer(pcm_format=PCM16)
    for name, samples in songs.items():
        rec.index_song(name, samples)
    return rec


@pytest.fixture
def library(tmp_path):
    """Folder of short wav songs plus one file that is not audio."""
    folder = tmp_path / "library"
    folder.mkdir()
    for seed, name in enumerate(["one", "two", "three"]):
        write_song(folder / f"{name}.wav", make_song(100 + seed, n_chunks=20))
    (folder / "broken.wav").write_bytes(b"definitely not a wav file")
    (folder / "notes.txt").write_text("ignored")
    return folder
