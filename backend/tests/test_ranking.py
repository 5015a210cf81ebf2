"""
Test color count aggregation and top-N ranking.
"""
import pytest

from colorscan.services.colors.ranking import count_color_names, rank_colors


def test_count_per_pixel_names():
    counts = count_color_names(["Red", "Blue", "Red", "White", "Red"])
    assert counts == {"Red": 3, "Blue": 1, "White": 1}
    assert list(counts) == ["Red", "Blue", "White"]


def test_count_with_cluster_weights():
    counts = count_color_names(["Red", "Red", "Navy", "Gray"], [10, 5, 0, 2])
    assert counts == {"Red": 15, "Navy": 0, "Gray": 2}


class TestRankColors:
    """Test general top-N selection"""

    def test_descending_by_count(self):
        counts = {"Blue": 5, "Red": 9, "Green": 1, "Black": 7, "Gray": 3}
        assert rank_colors(counts, 3) == ["Red", "Black", "Blue"]

    def test_larger_n_than_three(self):
        counts = {"A": 1, "B": 6, "C": 3, "D": 5, "E": 4, "F": 2}
        assert rank_colors(counts, 5) == ["B", "D", "E", "C", "F"]

    def test_ties_broken_alphabetically(self):
        counts = {"Red": 2, "Green": 1, "Blue": 1}
        assert rank_colors(counts, 2) == ["Red", "Blue"]

    def test_all_tied(self):
        counts = {"Tan": 4, "Navy": 4, "Gold": 4, "Aqua": 4}
        assert rank_colors(counts, 3) == ["Aqua", "Gold", "Navy"]

    def test_excluded_removed_even_if_most_frequent(self):
        counts = {"White": 100, "Red": 3, "Blue": 2}
        assert rank_colors(counts, 3, excluded={"White"}) == ["Red", "Blue"]

    def test_only_excluded_present(self):
        assert rank_colors({"White": 16}, 3, excluded=["White"]) == []

    def test_fewer_candidates_than_n_not_padded(self):
        assert rank_colors({"Red": 1, "Blue": 2}, 10) == ["Blue", "Red"]

    def test_zero_counts_ignored(self):
        assert rank_colors({"Red": 4, "Navy": 0}, 3) == ["Red"]

    def test_n_zero(self):
        assert rank_colors({"Red": 4}, 0) == []

    def test_negative_n_rejected(self):
        with pytest.raises(ValueError):
            rank_colors({"Red": 4}, -1)

    def test_result_length_is_min_of_n_and_names(self):
        counts = {name: i + 1 for i, name in enumerate(["P", "Q", "R", "S", "T", "U", "V"])}
        for n in range(10):
            ranked = rank_colors(counts, n)
            assert len(ranked) == min(n, len(counts))
            values = [counts[name] for name in ranked]
            assert values == sorted(values, reverse=True)
