"""
Block store tests: insertion, adjacency, tips and status updates.
"""

import pytest

from dag_viewer.benchmark import generate_mock_dag
from dag_viewer.engine.dag import Dag
from dag_viewer.types import BlockStatus

from conftest import make_block, make_hash


def assert_tip_invariant(dag: Dag) -> None:
    referenced = {p for block in dag.blocks.values() for p in block.parents}
    for block_hash in dag.blocks:
        assert (block_hash in dag.tips) == (block_hash not in referenced), block_hash


def assert_children_consistent(dag: Dag) -> None:
    for block in dag.blocks.values():
        for parent in block.parents:
            assert dag.children_of(parent).count(block.hash) == 1


class TestAddBlock:
    """Tests for Dag.add_block."""

    def test_single_block_is_tip(self, dag, genesis):
        dag.add_block(genesis)
        assert len(dag) == 1
        assert genesis.hash in dag
        assert dag.tips == (genesis.hash,)

    def test_child_replaces_parent_as_tip(self, dag):
        dag.add_block(make_block("genesis", 0))
        dag.add_block(make_block("b1", 1, ("genesis",)))
        assert dag.tips == (make_hash("b1"),)
        assert dag.children_of(make_hash("genesis")) == (make_hash("b1"),)

    def test_idempotent_insertion(self, dag):
        """Inserting the same hash twice leaves adjacency and tips unchanged."""
        dag.add_block(make_block("genesis", 0))
        child = make_block("b1", 1, ("genesis",))
        dag.add_block(child)

        tips_before = dag.tips
        children_before = dag.children_of(make_hash("genesis"))

        dag.add_block(child)

        assert dag.tips == tips_before
        assert dag.children_of(make_hash("genesis")) == children_before
        assert len(dag) == 2

    def test_reinsertion_replaces_fields(self, dag):
        partial = make_block("b1", -1, ("genesis",), status=BlockStatus.ADDED)
        dag.add_block(partial)
        dag.add_block(partial._replace(block_number=5))
        assert dag.get(make_hash("b1")).block_number == 5
        assert dag.children_of(make_hash("genesis")) == (make_hash("b1"),)

    def test_child_before_parent(self, dag):
        """A parent arriving after its child is not a tip."""
        dag.add_block(make_block("b1", 1, ("genesis",)))
        dag.add_block(make_block("genesis", 0))
        assert dag.tips == (make_hash("b1"),)
        assert_tip_invariant(dag)

    def test_dangling_parent_tolerated(self, dag):
        dag.add_block(make_block("orphan", 7, ("missing",)))
        assert dag.tips == (make_hash("orphan"),)
        assert dag.get(make_hash("missing")) is None

    def test_blocks_view_is_read_only(self, dag):
        dag.add_block(make_block("genesis", 0))
        dag.add_block(make_block("b1", 1, ("genesis",)))

        with pytest.raises(TypeError):
            dag.blocks[make_hash("b2")] = make_block("b2", 2, ("b1",))
        with pytest.raises(TypeError):
            del dag.blocks[make_hash("genesis")]
        assert not hasattr(dag.blocks, "pop")

        assert len(dag) == 2
        assert dag.tips == (make_hash("b1"),)
        assert_children_consistent(dag)

    def test_merge_block_removes_all_parents_from_tips(self, dag):
        dag.add_block(make_block("genesis", 0))
        dag.add_block(make_block("a1", 1, ("genesis",), seconds=1))
        dag.add_block(make_block("b1", 1, ("genesis",), seconds=2))
        assert set(dag.tips) == {make_hash("a1"), make_hash("b1")}

        dag.add_block(make_block("m2", 2, ("a1", "b1"), seconds=3))
        assert dag.tips == (make_hash("m2"),)

    def test_invariants_on_generated_dag(self, dag):
        blocks = generate_mock_dag(validators=3, rounds=30)
        # Shuffle arrival order deterministically: reversed
        dag.add_blocks(reversed(blocks))
        dag.add_blocks(blocks[:10])
        assert len(dag) == len(blocks)
        assert_tip_invariant(dag)
        assert_children_consistent(dag)


class TestUpdateStatus:
    """Tests for Dag.update_status."""

    def test_unknown_hash_is_noop(self, dag):
        dag.update_status(make_hash("nothing"), BlockStatus.FINALIZED)
        assert len(dag) == 0

    def test_overwrites_status(self, dag):
        dag.add_block(make_block("b1", 1, status=BlockStatus.CREATED))
        dag.update_status(make_hash("b1"), BlockStatus.ADDED)
        assert dag.get(make_hash("b1")).status is BlockStatus.ADDED

    def test_status_can_regress(self, dag):
        """Status changes are not forced to move forward: last write wins."""
        dag.add_block(make_block("b1", 1, status=BlockStatus.CREATED))
        dag.update_status(make_hash("b1"), BlockStatus.FINALIZED)
        dag.update_status(make_hash("b1"), BlockStatus.CREATED)
        assert dag.get(make_hash("b1")).status is BlockStatus.CREATED

    def test_does_not_touch_adjacency(self, dag):
        dag.add_block(make_block("genesis", 0))
        dag.add_block(make_block("b1", 1, ("genesis",)))
        dag.update_status(make_hash("genesis"), BlockStatus.ADDED)
        assert dag.tips == (make_hash("b1"),)


class TestSortedByHeight:
    """Tests for Dag.sorted_by_height."""

    def test_descending_height(self, chain_dag):
        assert chain_dag.sorted_by_height() == [
            make_hash("b2"), make_hash("b1"), make_hash("genesis"),
        ]

    def test_ties_broken_by_newer_timestamp(self, dag):
        dag.add_block(make_block("older", 3, seconds=10))
        dag.add_block(make_block("newer", 3, seconds=20))
        assert dag.sorted_by_height() == [make_hash("newer"), make_hash("older")]

    def test_unknown_height_sorts_last(self, dag):
        dag.add_block(make_block("pending", -1, seconds=100))
        dag.add_block(make_block("b1", 1))
        assert dag.sorted_by_height()[-1] == make_hash("pending")
