"""
DAG Viewer Test Fixtures
"""

from datetime import datetime, timedelta, timezone

import pytest

from dag_viewer.engine.dag import Dag
from dag_viewer.types import BlockStatus, DagBlock

BASE_TIME = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_hash(name: str) -> str:
    """64-char fake hash whose short form starts with `name`."""
    return name + "0" * (64 - len(name))


def make_block(
    name: str,
    height: int,
    parents: tuple[str, ...] = (),
    seconds: int = 0,
    status: BlockStatus = BlockStatus.FINALIZED,
    creator: str = "validatorA",
    deploy_count: int = 0,
) -> DagBlock:
    """Block named `name`; parents are names too."""
    return DagBlock(
        hash=make_hash(name),
        block_number=height,
        timestamp=BASE_TIME + timedelta(seconds=seconds),
        creator=creator,
        seq_num=max(height, 0),
        parents=tuple(make_hash(p) for p in parents),
        deploy_count=deploy_count,
        status=status,
    )


@pytest.fixture
def dag() -> Dag:
    return Dag()


@pytest.fixture
def genesis() -> DagBlock:
    return make_block("genesis", 0)


@pytest.fixture
def chain_dag() -> Dag:
    """genesis <- b1 <- b2, laid out."""
    d = Dag()
    d.add_block(make_block("genesis", 0))
    d.add_block(make_block("b1", 1, ("genesis",), seconds=1))
    d.add_block(make_block("b2", 2, ("b1",), seconds=2))
    d.compute_layout()
    return d
