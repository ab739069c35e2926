from collections import Counter
from pathlib import Path
from typing import List, Tuple

import matplotlib.pyplot as plt


def plot_matching_pairs(matching_pairs: List[Tuple[int, int]], output_path: Path,
                        title: str = "Query / reference alignment") -> Path:
    """
    Save a scatter of (query slice, reference slice) hits next to a histogram
    of their offsets. A true match shows up as a diagonal line and a single
    dominant offset bar.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    xs = [p[0] for p in matching_pairs]
    ys = [p[1] for p in matching_pairs]
    offsets = Counter(t_db - t_q for (t_q, t_db) in matching_pairs)

    fig, (ax_pairs, ax_offsets) = plt.subplots(1, 2, figsize=(14, 5))
    ax_pairs.scatter(xs, ys, s=4, c='blue')
    ax_pairs.set_xlabel("Query slice")
    ax_pairs.set_ylabel("Reference slice")
    ax_pairs.set_title(title)
    ax_pairs.grid(True)

    if offsets:
        deltas = sorted(offsets)
        ax_offsets.bar(deltas, [offsets[d] for d in deltas], width=1.0)
    ax_offsets.set_xlabel("Offset (slices)")
    ax_offsets.set_ylabel("Hits")
    ax_offsets.set_title("Offset histogram")

    fig.tight_layout()
    fig.savefig(output_path)
    plt.close(fig)
    return output_path
