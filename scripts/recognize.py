#!/usr/bin/env python3
"""
Song recognition CLI.

Usage:
    python scripts/recognize.py --query audio.mp3
    python scripts/recognize.py --query audio.mp3 --clip-length 10 --snr 5 --plot alignment.png
"""

import argparse
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from bandprint.config import INDEX_PATH, TOP_RESULTS
from bandprint.errors import IndexFormatError
from bandprint.logging_utils import setup_logging
from bandprint.recognizer import Recognizer, Timer


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='bandprint - Song Recognition')
    parser.add_argument('--query', '-q', type=str, required=True,
                        help='Path to query audio file')
    parser.add_argument('--db-path', type=str, default=INDEX_PATH,
                        help='Path to the index snapshot')
    parser.add_argument('--clip-length', type=float, default=None,
                        help='Clip length in seconds (for testing with shorter clips)')
    parser.add_argument('--snr', type=float, default=None,
                        help='SNR in dB for noise injection (for testing robustness)')
    parser.add_argument('--top', type=int, default=TOP_RESULTS,
                        help='Number of results to print')
    parser.add_argument('--plot', type=str, default=None,
                        help='Save the alignment of the best match to this image')
    parser.add_argument('--debug', action='store_true',
                        help='Log timings of every step')
    args = parser.parse_args(argv)

    setup_logging()
    query_path = Path(args.query)
    if not query_path.exists():
        print(f"Error: Query file not found: {query_path}")
        return 1

    recognizer = Recognizer()
    try:
        recognizer.load(args.db_path)
    except (FileNotFoundError, IndexFormatError) as e:
        print(f"Error loading index from {args.db_path}: {e}")
        return 1

    print(f"Recognizing: {query_path.name}")
    print(f"Database: {recognizer.num_indexed_songs} songs indexed")

    # kept so the alignment plot shows the exact clip that was recognized
    pcm = recognizer.load_query(query_path, clip_length_sec=args.clip_length,
                                snr_db=args.snr, timer=Timer(debug=args.debug))
    matches = [] if pcm is None else recognizer.recognize(pcm, top=args.top, debug=args.debug)

    if not matches:
        print("\n✗ No match found")
        return 0

    print(f"\n✓ Found {len(matches)} results:")
    for i, match in enumerate(matches, start=1):
        print(f"  {i}: {match}")

    if args.plot:
        from bandprint.plotting import plot_matching_pairs

        best = matches[0]
        pairs = recognizer.matching_pairs(pcm, best.song_id)
        out = plot_matching_pairs(pairs, Path(args.plot), title=best.song_name)
        print(f"  Alignment plot saved to {out}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
