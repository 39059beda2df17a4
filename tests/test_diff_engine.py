"""Unit tests for :mod:`cogmd.diff.engine`."""

from __future__ import annotations

import logging
import random

import pytest

from cogmd.diff.engine import EditOp, OpType, apply_ops, compute_lcs, diff_lines


def _types(ops: list[EditOp]) -> list[str]:
    return [op.type.value for op in ops]


class TestDiffLines:
    """Edit scripts produced by :func:`diff_lines`."""

    def test_identical_inputs_yield_only_equal_ops(self) -> None:
        lines = ["alpha", "beta", "gamma"]
        ops = diff_lines(lines, list(lines))

        assert [op.type for op in ops] == [OpType.EQUAL] * 3
        assert [(op.old_index, op.new_index) for op in ops] == [(0, 0), (1, 1), (2, 2)]

    def test_both_empty(self) -> None:
        assert diff_lines([], []) == []

    def test_pure_insertion_into_empty_document(self) -> None:
        ops = diff_lines([], ["a", "b"])

        assert ops == [EditOp.insert(0), EditOp.insert(1)]

    def test_pure_deletion(self) -> None:
        ops = diff_lines(["a", "b"], [])

        assert ops == [EditOp.delete(0), EditOp.delete(1)]

    def test_replacement_puts_delete_before_insert(self) -> None:
        ops = diff_lines(["a", "b", "c"], ["a", "x", "c"])

        assert ops == [
            EditOp.equal(0, 0),
            EditOp.delete(1),
            EditOp.insert(1),
            EditOp.equal(2, 2),
        ]

    def test_script_is_minimal_for_small_inputs(self) -> None:
        old = ["a", "b", "c", "d", "e"]
        new = ["b", "c", "x", "e", "f"]

        ops = diff_lines(old, new)

        assert _types(ops).count("equal") == 3

    def test_indices_are_dense_and_increasing(self) -> None:
        old = ["1", "2", "3", "4", "5", "6"]
        new = ["0", "2", "3", "x", "5", "7", "8"]

        ops = diff_lines(old, new)

        old_seen = [op.old_index for op in ops if op.old_index is not None]
        new_seen = [op.new_index for op in ops if op.new_index is not None]
        assert old_seen == list(range(len(old)))
        assert new_seen == list(range(len(new)))

    def test_greedy_fallback_above_cost_ceiling_still_replays(self) -> None:
        old = ["a", "b", "c", "d", "b", "e"]
        new = ["b", "a", "c", "e", "d"]

        ops = diff_lines(old, new, cost_ceiling=1)

        assert apply_ops(ops, old, new) == new
        old_seen = [op.old_index for op in ops if op.old_index is not None]
        assert old_seen == list(range(len(old)))

    def test_random_scripts_reproduce_target(self) -> None:
        rng = random.Random(1234)
        alphabet = ["a", "b", "c", "d", ""]
        for _ in range(50):
            old = [rng.choice(alphabet) for _ in range(rng.randint(0, 12))]
            new = [rng.choice(alphabet) for _ in range(rng.randint(0, 12))]
            for ceiling in (10_000_000, 4):
                ops = diff_lines(old, new, cost_ceiling=ceiling)
                assert apply_ops(ops, old, new) == new


class TestComputeLcs:
    """LCS anchors used to build edit scripts."""

    def test_shared_prefix_and_suffix_are_anchored(self) -> None:
        pairs = compute_lcs(["h", "x", "t"], ["h", "y", "t"])

        assert pairs == [(0, 0), (2, 2)]

    def test_pairs_strictly_increase(self) -> None:
        pairs = compute_lcs(["a", "b", "a", "b"], ["b", "a", "b", "a"])

        assert len(pairs) == 3
        for (old_a, new_a), (old_b, new_b) in zip(pairs, pairs[1:]):
            assert old_a < old_b
            assert new_a < new_b

    def test_ceiling_applies_to_full_input_size(self, caplog: pytest.LogCaptureFixture) -> None:
        old = ["h", "a", "b", "t"]
        new = ["h", "b", "a", "t"]

        with caplog.at_level(logging.DEBUG, logger="cogmd.diff.engine"):
            pairs = compute_lcs(old, new, cost_ceiling=10)

        assert "greedy alignment" in caplog.text
        assert pairs == [(0, 0), (1, 2), (3, 3)]

    def test_cost_equal_to_ceiling_uses_table(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="cogmd.diff.engine"):
            pairs = compute_lcs(["h", "a", "b", "t"], ["h", "b", "a", "t"], cost_ceiling=16)

        assert "greedy alignment" not in caplog.text
        assert len(pairs) == 3

    def test_empty_side_has_no_anchors(self) -> None:
        assert compute_lcs([], ["a"]) == []
        assert compute_lcs(["a"], []) == []


class TestApplyOps:
    """Replaying edit scripts."""

    def test_rejects_script_that_skips_old_lines(self) -> None:
        with pytest.raises(ValueError):
            apply_ops([EditOp.equal(1, 0)], ["a", "b"], ["b"])

    def test_rejects_script_that_leaves_old_lines_unconsumed(self) -> None:
        with pytest.raises(ValueError):
            apply_ops([EditOp.equal(0, 0)], ["a", "b"], ["a"])
