from collections import Counter, defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple
import logging
import time

import numpy as np
from joblib import Parallel, delayed
from tqdm import tqdm

from .audio import (as_samples, cut_audio, find_audio_files, inject_noise,
                    read_audio, read_pcm, to_pcm)
from .base import BaseFingerprinter
from .config import AUDIO_PATTERN, CHUNK_SIZE, N_JOBS, PCM_FORMAT, PcmFormat
from .db import FingerprintIndex, load_index, save_index
from .errors import IndexConsistencyError
from .hashing import BandFingerprinter
from .spectrum import to_frequency_domain

log = logging.getLogger(__name__)


class Timer:
    """Context manager for timing code blocks with optional debug logging."""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.timings: Dict[str, float] = {}

    @contextmanager
    def measure(self, label: str):
        """Time a block of code and optionally log the result."""
        start = time.perf_counter()
        yield
        elapsed = time.perf_counter() - start
        self.timings[label] = elapsed
        if self.debug:
            log.info("%s: %.4fs", label, elapsed)

    def log(self, message: str, *args):
        """Log a message only if debug mode is enabled."""
        if self.debug:
            log.info(message, *args)

    @property
    def total(self) -> float:
        return sum(self.timings.values())


@dataclass(frozen=True)
class SongMatch:
    """One ranked candidate: its best count of time-aligned hash hits."""
    song_id: int
    song_name: str
    match_strength: int
    offset: int  # reference slice minus query slice at the winning alignment

    def as_pair(self) -> Tuple[str, int]:
        return self.song_name, self.match_strength

    def __str__(self) -> str:
        return f"{self.song_name} (matches: {self.match_strength}, offset: {self.offset})"


class IndexedSong(NamedTuple):
    """Completion event for one file handed to the ingestion pool."""
    path: Path
    song_id: Optional[int]  # None when the file could not be decoded
    num_hashes: int


class Recognizer:
    """
    Band-keypoint audio fingerprinting and recognition.

    Fingerprints PCM buffers slice by slice, ingests them into a
    FingerprintIndex and ranks indexed songs for a query by the number of
    hashes that line up at a single time offset.
    """

    def __init__(self, index: Optional[FingerprintIndex] = None,
                 fingerprinter: Optional[BaseFingerprinter] = None,
                 pcm_format: PcmFormat = PCM_FORMAT,
                 chunk_size: int = CHUNK_SIZE):
        """
        Args:
            index: Index to ingest into and match against (a fresh one if None)
            fingerprinter: Keypoint/hash strategy (BandFingerprinter if None)
            pcm_format: Layout of PCM byte buffers handed to this recognizer
            chunk_size: Samples per FFT slice
        """
        self.index = index if index is not None else FingerprintIndex()
        self.fingerprinter = fingerprinter or BandFingerprinter()
        self.pcm_format = pcm_format
        self.chunk_size = chunk_size

    @property
    def name(self) -> str:
        return self.fingerprinter.name

    @property
    def num_indexed_songs(self) -> int:
        return self.index.num_songs

    def load(self, path) -> None:
        """Replace the current index with a snapshot from disk."""
        self.index = load_index(path)

    def save(self, path) -> None:
        save_index(self.index, path)

    # ------------------------------------------------------------------ #
    # Fingerprinting
    # ------------------------------------------------------------------ #

    def fingerprint(self, buffer) -> np.ndarray:
        """One hash per full chunk of `buffer` (PCM bytes or a sample array)."""
        samples = as_samples(buffer, self.pcm_format)
        spectra = to_frequency_domain(samples, self.chunk_size)
        keypoints = self.fingerprinter.determine_keypoints(spectra)
        return self.fingerprinter.hash_all(keypoints)

    # ------------------------------------------------------------------ #
    # Ingestion
    # ------------------------------------------------------------------ #

    def index_song(self, name: str, pcm) -> Optional[int]:
        """
        Fingerprint one song and add it to the index.

        Returns the new song id, or None if no audio data was supplied.
        """
        if pcm is None:
            return None
        song_id, _ = self._add_song(name, pcm)
        return song_id

    def index_file(self, audio_path) -> Optional[int]:
        return self._index_path(Path(audio_path)).song_id

    def _add_song(self, name: str, pcm) -> Tuple[int, int]:
        hashes = self.fingerprint(pcm)
        song_id = self.index.add_song(name)
        self.index.ingest_many(song_id, hashes)
        log.debug("Indexed '%s' as song %d (%d hashes)", name, song_id, len(hashes))
        return song_id, len(hashes)

    def _index_path(self, audio_path: Path) -> IndexedSong:
        pcm = read_pcm(audio_path, self.pcm_format)
        if pcm is None:
            return IndexedSong(audio_path, None, 0)
        song_id, num_hashes = self._add_song(audio_path.stem, pcm)
        return IndexedSong(audio_path, song_id, num_hashes)

    def iter_index_files(self, paths: Iterable[Path], n_jobs: int = N_JOBS) -> Iterator[IndexedSong]:
        """
        Ingest files on a thread pool, yielding one event per file in input order.

        Workers append into the shared index concurrently, so with n_jobs > 1
        song ids follow completion order rather than input order. Closing the
        generator early drops the files that have not been dispatched yet.
        """
        paths = [Path(p) for p in paths]
        if not paths:
            return
        parallel = Parallel(n_jobs=n_jobs, prefer="threads", return_as="generator")
        yield from parallel(delayed(self._index_path)(p) for p in paths)

    def index_folder(self, folder, pattern: str = AUDIO_PATTERN, n_jobs: int = N_JOBS,
                     recursive: bool = False, clear: bool = True) -> int:
        """Rebuild the index from every audio file in a folder; returns songs indexed."""
        audio_paths = find_audio_files(folder, pattern, recursive=recursive)
        log.info("Found %d files in %s", len(audio_paths), folder)
        if clear:
            self.index.clear()

        count = 0
        events = self.iter_index_files(audio_paths, n_jobs=n_jobs)
        for event in tqdm(events, total=len(audio_paths), desc="Indexing songs", unit="song"):
            if event.song_id is not None:
                count += 1
        skipped = len(audio_paths) - count
        if skipped:
            log.warning("Skipped %d unreadable files", skipped)
        return count

    # ------------------------------------------------------------------ #
    # Matching
    # ------------------------------------------------------------------ #

    def tally(self, hashes: Iterable[int]) -> Dict[int, Counter]:
        """song_id -> {reference slice - query slice -> number of hash hits}"""
        offset_votes: Dict[int, Counter] = defaultdict(Counter)
        for t, h in enumerate(hashes):
            for song_id, t_match in self.index.lookup(h):
                offset_votes[song_id][t_match - t] += 1
        return dict(offset_votes)

    def rank(self, offset_votes: Dict[int, Counter]) -> List[SongMatch]:
        """
        Score each candidate by its most popular offset.

        Sorted by match strength descending; equal strengths keep ascending
        song id order. Within a song, ties between offsets pick the smallest.
        """
        matches = []
        for song_id, offsets in offset_votes.items():
            strength = max(offsets.values())
            offset = min(d for d, c in offsets.items() if c == strength)
            song_name = self.index.song_name(song_id)
            if song_name is None:
                raise IndexConsistencyError(f"Matched unknown song id {song_id}")
            matches.append(SongMatch(song_id, song_name, strength, offset))
        matches.sort(key=lambda m: (-m.match_strength, m.song_id))
        return matches

    def recognize(self, buffer, top: Optional[int] = None, debug: bool = False) -> List[SongMatch]:
        """
        Rank indexed songs against a query buffer.

        Args:
            buffer: Query audio as PCM bytes or a sample array
            top: Keep only the first `top` results
            debug: If True, log timing information for each step

        Returns:
            Matches ordered from most to least likely; empty if nothing matched
        """
        timer = Timer(debug=debug)

        with timer.measure("Build hashes"):
            hashes = self.fingerprint(buffer)

        with timer.measure("Hash matching and voting"):
            offset_votes = self.tally(hashes)

        with timer.measure("Ranking"):
            matches = self.rank(offset_votes)

        timer.log("  Query hashes: %d", len(hashes))
        timer.log("  Candidate songs: %d", len(matches))
        timer.log("Total recognition time: %.4fs", timer.total)

        return matches[:top] if top is not None else matches

    def load_query(
        self,
        query_path,
        clip_length_sec: Optional[float] = None,
        snr_db: Optional[float] = None,
        timer: Optional[Timer] = None,
    ) -> Optional[bytes]:
        """
        Decode a query file to PCM, optionally cutting a clip and adding noise.

        Args:
            query_path: Path to the audio file
            clip_length_sec: Optional clip length in seconds
            snr_db: Optional SNR for noise injection
            timer: Timer collecting step durations

        Returns:
            PCM bytes in this recognizer's format, or None if the file cannot be decoded
        """
        timer = timer or Timer()

        with timer.measure("Load audio"):
            decoded = read_audio(query_path)
        if decoded is None:
            return None
        signal, sample_rate = decoded

        if clip_length_sec is not None:
            with timer.measure("Cut audio"):
                signal = cut_audio(signal, sample_rate, clip_length_sec)

        if snr_db is not None:
            with timer.measure("Inject noise"):
                signal = inject_noise(signal, snr_db)

        with timer.measure("Convert to PCM"):
            return to_pcm(signal, sample_rate, self.pcm_format)

    def recognize_file(
        self,
        query_path,
        clip_length_sec: Optional[float] = None,
        snr_db: Optional[float] = None,
        top: Optional[int] = None,
        debug: bool = False,
    ) -> List[SongMatch]:
        """Recognize an audio file; see `load_query` for the degradation options."""
        pcm = self.load_query(query_path, clip_length_sec, snr_db, timer=Timer(debug=debug))
        if pcm is None:
            return []
        return self.recognize(pcm, top=top, debug=debug)

    def matching_pairs(self, buffer, song_id: int) -> List[Tuple[int, int]]:
        """(query slice, reference slice) for every hash hit on one song."""
        pairs = []
        for t, h in enumerate(self.fingerprint(buffer)):
            for match_id, t_match in self.index.lookup(h):
                if match_id == song_id:
                    pairs.append((t, t_match))
        return pairs
