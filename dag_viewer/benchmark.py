#!/usr/bin/env python3
"""
Micro-benchmark for DAG Viewer performance.

Tests:
1. Block store insertion throughput
2. Full layout recompute speed (runs after every live block)
3. Row rendering speed (one visible screen)

Usage:
    python -m dag_viewer.benchmark
"""

from __future__ import annotations

import random
import time
from datetime import datetime, timedelta, timezone
from statistics import mean, stdev

from .engine.dag import Dag
from .types import BlockStatus, DagBlock
from .ui.renderer import DagRenderer


def mock_hash(rng: random.Random) -> str:
    return f"{rng.getrandbits(256):064x}"


def generate_mock_dag(
    validators: int = 4,
    rounds: int = 100,
    parents_per_block: int = 2,
    seed: int = 7,
) -> list[DagBlock]:
    """
    Generate a synthetic multi-validator DAG.

    Every round each validator creates one block at height = round whose
    first parent is its own previous block and whose other parents are
    blocks of other validators from the previous round.
    """
    rng = random.Random(seed)
    creators = [mock_hash(rng) for _ in range(validators)]
    base_time = datetime(2024, 1, 1, tzinfo=timezone.utc)

    blocks: list[DagBlock] = []

    genesis = DagBlock(
        hash=mock_hash(rng),
        block_number=0,
        timestamp=base_time,
        creator=creators[0],
        seq_num=0,
        parents=(),
        deploy_count=0,
        status=BlockStatus.FINALIZED,
    )
    blocks.append(genesis)
    previous = [genesis.hash] * validators

    for height in range(1, rounds + 1):
        current: list[str] = []
        for v, creator in enumerate(creators):
            others = [h for i, h in enumerate(previous) if i != v and h != previous[v]]
            extra = rng.sample(others, min(len(others), parents_per_block - 1))
            block = DagBlock(
                hash=mock_hash(rng),
                block_number=height,
                timestamp=base_time + timedelta(seconds=height, milliseconds=v),
                creator=creator,
                seq_num=height,
                parents=(previous[v], *extra),
                deploy_count=rng.randint(0, 3),
                status=BlockStatus.FINALIZED,
            )
            blocks.append(block)
            current.append(block.hash)
        previous = current

    return blocks


def benchmark_insertion(rounds: int = 500) -> None:
    """Benchmark block store insertion."""
    print("\n=== Block Store Insertion Benchmark ===")

    blocks = generate_mock_dag(validators=4, rounds=rounds)

    start = time.perf_counter()
    dag = Dag()
    for block in blocks:
        dag.add_block(block)
    elapsed = time.perf_counter() - start

    print(f"  Blocks inserted: {len(blocks):,}")
    print(f"  Time: {elapsed*1000:.1f}ms")
    print(f"  Rate: {len(blocks) / elapsed:,.0f} blocks/sec")
    print(f"  Tips: {len(dag.tips)}")


def benchmark_layout(iterations: int = 50, rounds: int = 250) -> None:
    """Benchmark full layout recomputation."""
    print("\n=== Layout Recompute Benchmark ===")

    dag = Dag()
    dag.add_blocks(generate_mock_dag(validators=4, rounds=rounds))

    # Warm up
    for _ in range(3):
        dag.compute_layout()

    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        dag.compute_layout()
        times.append(time.perf_counter() - start)

    avg_time = mean(times) * 1000
    std_time = stdev(times) * 1000 if len(times) > 1 else 0.0

    print(f"  Blocks: {len(dag):,}  Columns: {dag.max_columns}")
    print(f"  Iterations: {iterations}")
    print(f"  Avg time: {avg_time:.3f}ms")
    print(f"  Std dev: {std_time:.3f}ms")
    print(f"  Max blocks/sec sustainable: {1000/avg_time:,.0f}")


def benchmark_render(iterations: int = 200, visible_rows: int = 40, width: int = 160) -> None:
    """Benchmark rendering one screen of rows."""
    print("\n=== Row Rendering Benchmark ===")

    dag = Dag()
    dag.add_blocks(generate_mock_dag(validators=4, rounds=100))
    dag.compute_layout()
    renderer = DagRenderer()
    rows = dag.graph_rows[:visible_rows]

    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        renderer.render_header(dag, width)
        for i, row in enumerate(rows):
            renderer.render_row(row, dag, i == 0, width)
        times.append(time.perf_counter() - start)

    avg_time = mean(times) * 1000
    std_time = stdev(times) * 1000 if len(times) > 1 else 0.0

    print(f"  Rows per frame: {len(rows)}")
    print(f"  Avg time: {avg_time:.3f}ms")
    print(f"  Std dev: {std_time:.3f}ms")
    print(f"  Max FPS possible: {1000/avg_time:,.0f}")


def main() -> None:
    """Run all benchmarks."""
    print("=" * 60)
    print("DAG Viewer Performance Benchmark")
    print("=" * 60)

    benchmark_insertion()
    benchmark_layout()
    benchmark_render()

    print("\n" + "=" * 60)
    print("Benchmark complete.")
    print("=" * 60)


if __name__ == "__main__":
    main()
