#!/usr/bin/env python3
"""
Benchmark script comparing 2D layout speed between RDKit and chiralayout.

Usage:
    python benchmarks/bench_layout.py [--extended]

Run from the repository root to use the local version:
    python benchmarks/bench_layout.py

Options:
    --extended    Run extended benchmark with multiple molecules and detailed metrics
"""

import sys
import os
import time
from dataclasses import dataclass
from typing import Optional

# Ensure local chiralayout is used (not installed version)
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Test molecules with varying ring complexity
TEST_MOLECULES = {
    "chain": "CCCCCCCCCCCCCCCCCCCC",
    "ibuprofen": "CC(C)Cc1ccc(cc1)C(C)C(=O)O",
    "steroid": "CC12CCC3C(C1CCC2O)CCC4=CC(=O)CCC34C",  # Testosterone
    "bridged": "CC1(C)C2CCC1(C)C(=O)C2",  # Camphor
    "drug_like": "Cc1ccc(cc1Nc2nccc(n2)c3cccnc3)NC(=O)c4ccc(cc4)CN5CCN(CC5)C",  # Imatinib-like
}

# Default molecule for quick benchmark
DEFAULT_MOLECULE = TEST_MOLECULES["drug_like"]

ITERATIONS = 200
EXTENDED_ITERATIONS = 100


@dataclass
class BenchmarkResult:
    """Results from a single benchmark run."""
    smiles: str
    time_seconds: float
    iterations: int
    num_atoms: int
    num_rings: int

    @property
    def time_per_call_ms(self) -> float:
        return (self.time_seconds / self.iterations) * 1000

    @property
    def time_per_atom_us(self) -> float:
        """Microseconds per atom per call."""
        return (self.time_seconds / self.iterations / self.num_atoms) * 1_000_000


def benchmark_rdkit(smiles: str, iterations: int) -> BenchmarkResult:
    """Benchmark RDKit 2D coordinate generation."""
    from rdkit import Chem
    from rdkit.Chem import rdDepictor

    mol = Chem.MolFromSmiles(smiles)
    if mol is None:
        raise ValueError(f"RDKit failed to parse SMILES: {smiles}")

    # Warmup
    rdDepictor.Compute2DCoords(mol)

    start = time.perf_counter()
    for _ in range(iterations):
        rdDepictor.Compute2DCoords(mol)
    end = time.perf_counter()

    return BenchmarkResult(
        smiles=smiles,
        time_seconds=end - start,
        iterations=iterations,
        num_atoms=mol.GetNumAtoms(),
        num_rings=mol.GetRingInfo().NumRings(),
    )


def benchmark_chiralayout(smiles: str, iterations: int) -> BenchmarkResult:
    """Benchmark chiralayout from parse tree to draw commands."""
    from chiralayout import MoleculeDrawer, parse_tree

    drawer = MoleculeDrawer()
    tree = parse_tree(smiles)

    # Warmup
    result = drawer.draw(tree)

    start = time.perf_counter()
    for _ in range(iterations):
        result = drawer.draw(tree)
    end = time.perf_counter()

    return BenchmarkResult(
        smiles=smiles,
        time_seconds=end - start,
        iterations=iterations,
        num_atoms=len(result.session.graph.vertices),
        num_rings=result.session.ring_count,
    )


def run_single_benchmark():
    """Run basic single-molecule benchmark."""
    print("=" * 70)
    print("2D Layout Benchmark: RDKit vs chiralayout")
    print("=" * 70)
    print(f"\nTest molecule ({len(DEFAULT_MOLECULE)} chars):")
    print(f"  {DEFAULT_MOLECULE[:60]}...")
    print(f"\nIterations: {ITERATIONS}")
    print("-" * 70)

    rdkit_result: Optional[BenchmarkResult] = None
    local_result: Optional[BenchmarkResult] = None

    print("\nRunning RDKit benchmark...", end=" ", flush=True)
    try:
        rdkit_result = benchmark_rdkit(DEFAULT_MOLECULE, ITERATIONS)
        print("done")
        print(f"  Time: {rdkit_result.time_seconds:.3f}s ({rdkit_result.time_per_call_ms:.3f}ms per call)")
    except ImportError:
        print("SKIPPED (rdkit not installed)")
    except Exception as e:
        print(f"ERROR: {e}")

    print("\nRunning chiralayout benchmark...", end=" ", flush=True)
    try:
        local_result = benchmark_chiralayout(DEFAULT_MOLECULE, ITERATIONS)
        print("done")
        print(f"  Time: {local_result.time_seconds:.3f}s ({local_result.time_per_call_ms:.3f}ms per call)")
        print(f"  Rings: {local_result.num_rings}")
    except Exception as e:
        print(f"ERROR: {e}")

    print("\n" + "=" * 70)
    print("Summary")
    print("=" * 70)

    if rdkit_result and local_result:
        ratio = local_result.time_seconds / rdkit_result.time_seconds
        if ratio < 1:
            print(f"chiralayout is {1/ratio:.2f}x FASTER than RDKit")
        else:
            print(f"chiralayout is {ratio:.2f}x SLOWER than RDKit")
    else:
        print("Could not compare (one or both libraries failed)")


def run_extended_benchmark():
    """Run extended benchmark with multiple molecules and per-atom cost."""
    print("=" * 80)
    print("EXTENDED 2D Layout Benchmark: RDKit vs chiralayout")
    print("=" * 80)
    print(f"\nIterations per molecule: {EXTENDED_ITERATIONS}")
    print("-" * 80)

    results: dict[str, dict[str, Optional[BenchmarkResult]]] = {}

    for name, smiles in TEST_MOLECULES.items():
        print(f"\n[{name}] ({len(smiles)} chars)")
        results[name] = {"rdkit": None, "chiralayout": None}

        try:
            result = benchmark_rdkit(smiles, EXTENDED_ITERATIONS)
            results[name]["rdkit"] = result
            print(f"  RDKit:       {result.time_per_call_ms:.4f} ms/call")
        except ImportError:
            print("  RDKit:       SKIPPED (not installed)")
        except Exception as e:
            print(f"  RDKit:       ERROR ({e})")

        try:
            result = benchmark_chiralayout(smiles, EXTENDED_ITERATIONS)
            results[name]["chiralayout"] = result
            print(f"  chiralayout: {result.time_per_call_ms:.4f} ms/call | {result.num_rings} rings")
        except Exception as e:
            print(f"  chiralayout: ERROR ({e})")

    print("\n" + "=" * 80)
    print("Detailed Comparison")
    print("=" * 80)

    header = f"{'Molecule':<12} {'Atoms':>6} {'Rings':>6} {'RDKit ms':>10} {'local ms':>10} {'Ratio':>8} {'µs/atom':>10}"
    print(header)
    print("-" * 80)

    for name in TEST_MOLECULES:
        rdkit_res = results[name]["rdkit"]
        local_res = results[name]["chiralayout"]
        if local_res is None:
            print(f"{name:<12} {'N/A':>6} {'N/A':>6} {'N/A':>10} {'N/A':>10} {'N/A':>8} {'N/A':>10}")
            continue

        rdkit_ms = f"{rdkit_res.time_per_call_ms:.4f}" if rdkit_res else "N/A"
        ratio = f"{local_res.time_seconds / rdkit_res.time_seconds:.2f}x" if rdkit_res else "N/A"
        print(f"{name:<12} "
              f"{local_res.num_atoms:>6} "
              f"{local_res.num_rings:>6} "
              f"{rdkit_ms:>10} "
              f"{local_res.time_per_call_ms:>10.4f} "
              f"{ratio:>8} "
              f"{local_res.time_per_atom_us:>10.2f}")


def main():
    if "--extended" in sys.argv or "-e" in sys.argv:
        run_extended_benchmark()
    else:
        run_single_benchmark()
        print("\n" + "-" * 70)
        print("TIP: Run with --extended for detailed multi-molecule analysis")


if __name__ == "__main__":
    main()
