"""Tests for the alignment plot."""

from bandprint.plotting import plot_matching_pairs


def test_plot_matching_pairs_writes_image(tmp_path):
    pairs = [(t, t + 5) for t in range(30)] + [(3, 17), (8, 2)]
    out = plot_matching_pairs(pairs, tmp_path / "figs" / "pairs.png")
    assert out.is_file()
    assert out.stat().st_size > 0


def test_plot_without_pairs(tmp_path):
    out = plot_matching_pairs([], tmp_path / "empty.png")
    assert out.is_file()
