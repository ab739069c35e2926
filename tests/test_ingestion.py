"""Tests for file-based ingestion and recognition."""

from collections import Counter
from pathlib import Path

from bandprint.recognizer import IndexedSong, Recognizer


def by_name(index):
    """name -> sorted (hash, time) pairs, independent of song id order."""
    names = dict(index.songs())
    out = {}
    for h, points in index.hash_table.items():
        for song_id, t in points:
            out.setdefault(names[song_id], []).append((h, t))
    return {name: sorted(pairs) for name, pairs in out.items()}


def test_index_folder_skips_unreadable_files(library):
    rec = Recognizer()
    count = rec.index_folder(library, pattern="*.wav")

    assert count == 3
    assert sorted(name for _, name in rec.index.songs()) == ["one", "three", "two"]
    assert [song_id for song_id, _ in rec.index.songs()] == [0, 1, 2]


def test_index_folder_clears_previous_contents(library):
    rec = Recognizer()
    rec.index_song("stale", b"\x01" * 8192)
    rec.index_folder(library, pattern="*.wav")
    assert "stale" not in dict(rec.index.songs()).values()
    assert rec.num_indexed_songs == 3


def test_index_folder_can_append(library):
    rec = Recognizer()
    rec.index_song("kept", b"\x01" * 8192)
    rec.index_folder(library, pattern="*.wav", clear=False)
    assert rec.num_indexed_songs == 4


def test_parallel_ingestion_matches_sequential(library):
    sequential = Recognizer()
    sequential.index_folder(library, pattern="*.wav", n_jobs=1)
    parallel = Recognizer()
    parallel.index_folder(library, pattern="*.wav", n_jobs=3)

    assert by_name(parallel.index) == by_name(sequential.index)


def test_iter_index_files_reports_each_file(library):
    rec = Recognizer()
    paths = [library / "one.wav", library / "broken.wav", library / "missing.wav"]
    events = list(rec.iter_index_files(paths, n_jobs=2))

    assert [e.path for e in events] == paths
    assert isinstance(events[0], IndexedSong)
    assert events[0].song_id is not None
    assert events[0].num_hashes == 20
    assert events[1] == IndexedSong(library / "broken.wav", None, 0)
    assert events[2].song_id is None
    assert rec.num_indexed_songs == 1


def test_iter_index_files_without_files():
    assert list(Recognizer().iter_index_files([])) == []


def test_index_file(library):
    rec = Recognizer()
    assert rec.index_file(library / "two.wav") == 0
    assert rec.index.song_name(0) == "two"
    assert rec.index_file(library / "broken.wav") is None


def test_recognize_file(library):
    rec = Recognizer()
    rec.index_folder(library, pattern="*.wav")
    matches = rec.recognize_file(library / "three.wav", top=2)

    assert len(matches) <= 2
    assert matches[0].song_name == "three"
    assert matches[0].match_strength == 20


def test_recognize_file_with_long_clip_uses_whole_song(library):
    rec = Recognizer()
    rec.index_folder(library, pattern="*.wav")
    best = rec.recognize_file(library / "one.wav", clip_length_sec=60)[0]
    assert best.song_name == "one"
    assert best.match_strength == 20


def test_recognize_unreadable_file(library):
    rec = Recognizer()
    rec.index_folder(library, pattern="*.wav")
    assert rec.recognize_file(library / "broken.wav") == []
    assert rec.recognize_file(Path(library / "nope.wav")) == []


def test_recognize_with_light_noise(library):
    rec = Recognizer()
    rec.index_folder(library, pattern="*.wav")
    matches = rec.recognize_file(library / "two.wav", snr_db=30)
    assert matches[0].song_name == "two"
    assert matches[0].offset == 0


def test_load_query_cuts_the_clip(library):
    rec = Recognizer()
    pcm = rec.load_query(library / "one.wav", clip_length_sec=0.5)
    # 8-bit mono: one byte per sample
    assert len(pcm) == int(0.5 * 44100)


def test_load_query_of_unreadable_file(library):
    assert Recognizer().load_query(library / "broken.wav") is None


def test_pairs_of_a_degraded_query_agree_with_its_match(library):
    rec = Recognizer()
    rec.index_folder(library, pattern="*.wav")
    pcm = rec.load_query(library / "three.wav", snr_db=30)
    best = rec.recognize(pcm)[0]

    deltas = Counter(t_ref - t_query for t_query, t_ref in rec.matching_pairs(pcm, best.song_id))
    assert deltas[best.offset] == best.match_strength
    assert max(deltas.values()) == best.match_strength
