"""Benchmark: dispatch throughput — actions per second.

Measures how many facade operations per second a store can apply,
including the inline snapshot save to the in-memory backend.
"""
from __future__ import annotations

import json
import time
from pathlib import Path

from tab_session.session.facade import SessionActions
from tab_session.session.store import SessionStore
from tab_session.storage.gateway import PersistenceGateway
from tab_session.storage.memory import InMemoryBackend

_ITERATIONS: int = 2_000


def bench_dispatch_throughput() -> dict[str, object]:
    """Benchmark open/navigate/close cycles through the action facade.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms, p99_latency_ms.
    """
    backend = InMemoryBackend()
    store = SessionStore(PersistenceGateway(backend))
    store.hydrate()
    actions = SessionActions(store)

    latencies_ms: list[float] = []
    for index in range(_ITERATIONS):
        t0 = time.perf_counter()
        tab_id = actions.add_tab()
        actions.navigate(tab_id, f"query {index}")
        actions.close_tab(tab_id)
        latencies_ms.append((time.perf_counter() - t0) * 1000)

    total = sum(latencies_ms) / 1000
    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)

    result: dict[str, object] = {
        "operation": "dispatch_open_navigate_close",
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
        "snapshot_writes": backend.write_count,
    }
    print(
        f"[bench_dispatch_throughput] {result['operation']}: "
        f"{result['ops_per_second']:,.0f} cycles/sec  "
        f"avg {result['avg_latency_ms']:.4f} ms"
    )
    return result


def run_benchmark() -> dict[str, object]:
    """Entry point returning the benchmark result dict."""
    return bench_dispatch_throughput()


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "dispatch_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
