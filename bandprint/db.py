import pickle
import threading
from pathlib import Path
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

from .errors import IndexConsistencyError, IndexFormatError

INDEX_FORMAT_VERSION = 1


class DataPoint(NamedTuple):
    """A (song, time slice) occurrence of one fingerprint hash."""
    song_id: int
    time: int


class FingerprintIndex:
    """
    In-memory song registry plus hash table of fingerprint occurrences.

    hash_table: dict[int -> list[DataPoint]]
    song_table: dict[song_id -> name]

    Writers (add_song, ingest, clear) serialize on a single lock so ingestion
    can run from several worker threads at once. Readers get a tuple snapshot
    of a bucket and never observe a list in the middle of an append.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.hash_table: Dict[int, List[DataPoint]] = {}
        self.song_table: Dict[int, str] = {}
        self.next_song_id = 0

    def clear(self) -> None:
        """Drop every song and bucket and restart song ids at 0."""
        with self._lock:
            self.hash_table = {}
            self.song_table = {}
            self.next_song_id = 0

    def add_song(self, name: str) -> int:
        with self._lock:
            song_id = self.next_song_id
            self.next_song_id += 1
            self.song_table[song_id] = name
        return song_id

    def ingest(self, song_id: int, time: int, h: int) -> None:
        with self._lock:
            self._check_song(song_id)
            self._append(int(h), DataPoint(song_id, int(time)))

    def ingest_many(self, song_id: int, hashes: Iterable[int]) -> int:
        """Ingest a song's hash sequence, using each position as its time slice."""
        count = 0
        with self._lock:
            self._check_song(song_id)
            for time, h in enumerate(hashes):
                self._append(int(h), DataPoint(song_id, time))
                count += 1
        return count

    def lookup(self, h: int) -> Tuple[DataPoint, ...]:
        return tuple(self.hash_table.get(int(h), ()))

    def song_name(self, song_id: int) -> Optional[str]:
        return self.song_table.get(song_id)

    def songs(self) -> List[Tuple[int, str]]:
        return sorted(self.song_table.items())

    @property
    def num_songs(self) -> int:
        return len(self.song_table)

    @property
    def num_hashes(self) -> int:
        return len(self.hash_table)

    @property
    def num_occurrences(self) -> int:
        return sum(len(bucket) for bucket in list(self.hash_table.values()))

    def __contains__(self, h) -> bool:
        return int(h) in self.hash_table

    def __len__(self) -> int:
        return self.num_songs

    def _check_song(self, song_id: int) -> None:
        if song_id not in self.song_table:
            raise IndexConsistencyError(f"Song id {song_id} is not registered")

    def _append(self, h: int, point: DataPoint) -> None:
        bucket = self.hash_table.get(h)
        if bucket is None:
            self.hash_table[h] = [point]
        else:
            bucket.append(point)


def save_index(index: FingerprintIndex, path: Union[str, Path]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with index._lock:
        payload = {
            "version": INDEX_FORMAT_VERSION,
            "next_song_id": index.next_song_id,
            "songs": dict(index.song_table),
            "buckets": {h: [tuple(p) for p in points]
                        for h, points in index.hash_table.items()},
        }
    with open(path, "wb") as f:
        pickle.dump(payload, f, protocol=pickle.HIGHEST_PROTOCOL)


def load_index(path: Union[str, Path]) -> FingerprintIndex:
    """
    Load a snapshot written by `save_index`.

    Raises FileNotFoundError when the file is missing and IndexFormatError
    when it holds anything but a snapshot of the current format version.
    """
    with open(path, "rb") as f:
        try:
            payload = pickle.load(f)
        except (pickle.UnpicklingError, EOFError, AttributeError, ValueError) as e:
            raise IndexFormatError(f"Unreadable index snapshot {path}: {e}") from e

    if not isinstance(payload, dict) or "version" not in payload:
        raise IndexFormatError(f"{path} is not an index snapshot")
    if payload["version"] != INDEX_FORMAT_VERSION:
        raise IndexFormatError(
            f"Unsupported index format version {payload['version']} "
            f"(expected {INDEX_FORMAT_VERSION})")

    index = FingerprintIndex()
    try:
        index.song_table = {int(k): str(v) for k, v in payload["songs"].items()}
        index.hash_table = {
            int(h): [DataPoint(int(s), int(t)) for s, t in points]
            for h, points in payload["buckets"].items()
        }
        index.next_song_id = int(payload["next_song_id"])
    except (KeyError, TypeError, ValueError) as e:
        raise IndexFormatError(f"Malformed index snapshot {path}: {e}") from e

    for points in index.hash_table.values():
        for point in points:
            if point.song_id not in index.song_table:
                raise IndexConsistencyError(
                    f"Snapshot {path} references unknown song id {point.song_id}")
    return index
