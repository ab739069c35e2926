#!/usr/bin/env python3
"""
Build a fingerprint index from a folder of songs and save it to disk.

Usage:
    python scripts/index_songs.py --folder ~/music
    python scripts/index_songs.py --folder ~/music --pattern "*.flac" --jobs 4 --recursive
"""

import argparse
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from bandprint.config import AUDIO_PATTERN, INDEX_PATH, N_JOBS
from bandprint.logging_utils import log_detail, log_section, log_success, setup_logging
from bandprint.recognizer import Recognizer


def index_folder(folder: Path, output: Path, pattern: str, n_jobs: int,
                 recursive: bool = False) -> int:
    """Index every matching file in `folder` and write the snapshot to `output`."""
    log_section("🎵 Indexing songs")
    log_detail("Folder", str(folder))
    log_detail("Pattern", pattern)
    log_detail("Workers", str(n_jobs))

    recognizer = Recognizer()
    count = recognizer.index_folder(folder, pattern=pattern, n_jobs=n_jobs,
                                    recursive=recursive)
    recognizer.save(output)

    log_success(f"Saved {count} songs ({recognizer.index.num_hashes} distinct hashes) to {output}")
    return count


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Index songs for recognition')
    parser.add_argument('--folder', '-f', type=str, required=True)
    parser.add_argument('--output', '-o', type=str, default=INDEX_PATH)
    parser.add_argument('--pattern', '-p', type=str, default=AUDIO_PATTERN)
    parser.add_argument('--jobs', '-j', type=int, default=N_JOBS,
                        help='Number of files fingerprinted in parallel (-1 = all cores)')
    parser.add_argument('--recursive', '-r', action='store_true',
                        help='Descend into sub-folders')
    args = parser.parse_args(argv)

    setup_logging()
    folder = Path(args.folder).expanduser()
    output = Path(args.output).expanduser()

    if not folder.is_dir():
        print(f"Error: Folder not found: {folder}")
        return 1

    index_folder(folder, output, args.pattern, args.jobs, recursive=args.recursive)
    return 0


if __name__ == '__main__':
    sys.exit(main())
