"""
Eligibility Resolver Performance Benchmarks

Measures:
- Single-sensor and multi-sensor evaluation latency
- Either-of (biometric + credential) resolution
- Classification with failing collaborator queries
- Concurrent evaluation through a shared resolver

Usage:
    python -m benchmarks.bench_resolver
"""

import logging
import statistics
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List

from authgate import (
    AuthenticationRequest, Authenticators, EligibilityResolver, KeyguardFeature,
    LockoutMode, Modality, SensorDescriptor, SensorQueryError, SnapshotPolicyQueries, Strength,
)


def create_test_sensors() -> List[SensorDescriptor]:
    """One sensor per modality, strongest first."""
    return [
        SensorDescriptor(id=0, modality=Modality.FINGERPRINT, factory_strength=Strength.STRONG),
        SensorDescriptor(id=1, modality=Modality.FACE, factory_strength=Strength.WEAK),
        SensorDescriptor(id=2, modality=Modality.IRIS, factory_strength=Strength.CONVENIENCE),
    ]


class _FailingQueries(SnapshotPolicyQueries):
    def get_lockout_mode(self, sensor, user_id):
        raise SensorQueryError("lockout query unavailable")


class ResolverBenchmarks:
    """Benchmarks for the EligibilityResolver component."""

    def __init__(self, iterations: int = 10000):
        self.iterations = iterations
        self.results: Dict[str, Dict[str, Any]] = {}
        self.sensors = create_test_sensors()
        self.queries = SnapshotPolicyQueries(
            enrollments=frozenset({(0, 0), (1, 0), (2, 0)}),
            secure_users=frozenset({0}),
        )

    def _time_evaluations(self, name: str, resolver: EligibilityResolver,
                          sensors: List[SensorDescriptor],
                          request: AuthenticationRequest) -> Dict[str, Any]:
        times = []
        for _ in range(self.iterations):
            start = time.perf_counter_ns()
            resolver.evaluate(sensors, request).pre_authenticate_status()
            end = time.perf_counter_ns()
            times.append(end - start)
        return self._compute_stats(name, times)

    def bench_single_sensor(self) -> Dict[str, Any]:
        """Benchmark one fingerprint sensor, weak biometric request."""
        resolver = EligibilityResolver(self.queries)
        return self._time_evaluations("single_sensor", resolver, self.sensors[:1],
                                      AuthenticationRequest(user_id=0))

    def bench_multi_sensor(self) -> Dict[str, Any]:
        """Benchmark three sensors with mixed outcomes."""
        queries = SnapshotPolicyQueries(
            enrollments=frozenset({(1, 0)}),
            lockouts={(2, 0): LockoutMode.TIMED},
            keyguard_disabled_features={0: KeyguardFeature.FACE},
            secure_users=frozenset({0}),
        )
        resolver = EligibilityResolver(queries)
        request = AuthenticationRequest(user_id=0, requested_strength=Strength.CONVENIENCE)
        return self._time_evaluations("multi_sensor", resolver, self.sensors, request)

    def bench_either_of(self) -> Dict[str, Any]:
        """Benchmark biometric-or-credential resolution."""
        resolver = EligibilityResolver(self.queries)
        request = AuthenticationRequest(user_id=0, requested_strength=Strength.STRONG,
                                        credential_requested=True)
        return self._time_evaluations("either_of", resolver, self.sensors, request)

    def bench_failing_queries(self) -> Dict[str, Any]:
        """Benchmark classification when every lockout query raises."""
        logging.getLogger("authgate").setLevel(logging.CRITICAL)
        queries = _FailingQueries(enrollments=frozenset({(0, 0), (1, 0), (2, 0)}))
        resolver = EligibilityResolver(queries)
        request = AuthenticationRequest(user_id=0, requested_strength=Strength.CONVENIENCE)
        try:
            return self._time_evaluations("failing_queries", resolver, self.sensors, request)
        finally:
            logging.getLogger("authgate").setLevel(logging.NOTSET)

    def bench_can_authenticate(self) -> Dict[str, Any]:
        """Benchmark the coarse capability check from public flags."""
        resolver = EligibilityResolver(self.queries)
        flags = Authenticators.BIOMETRIC_STRONG | Authenticators.DEVICE_CREDENTIAL

        times = []
        for _ in range(self.iterations):
            start = time.perf_counter_ns()
            resolver.can_authenticate(self.sensors, flags, user_id=0)
            end = time.perf_counter_ns()
            times.append(end - start)

        return self._compute_stats("can_authenticate", times)

    def bench_concurrent_evaluation(self) -> Dict[str, Any]:
        """Benchmark concurrent evaluations through one resolver."""
        resolver = EligibilityResolver(self.queries)
        requests = [
            AuthenticationRequest(user_id=0),
            AuthenticationRequest(user_id=0, requested_strength=Strength.STRONG),
            AuthenticationRequest(user_id=0, credential_requested=True),
            AuthenticationRequest(user_id=0, requested_modalities=Modality.NONE,
                                  credential_requested=True),
        ]

        def evaluate_batch():
            start = time.perf_counter_ns()
            for request in requests:
                resolver.evaluate(self.sensors, request).internal_status()
            return time.perf_counter_ns() - start

        with ThreadPoolExecutor(max_workers=8) as executor:
            futures = [executor.submit(evaluate_batch)
                       for _ in range(self.iterations // 4)]
            times = [f.result() for f in futures]

        return self._compute_stats("concurrent_evaluation", times)

    def _compute_stats(self, name: str, times_ns: List[int]) -> Dict[str, Any]:
        """Compute statistics from timing measurements."""
        times_us = [t / 1000 for t in times_ns]  # Convert to microseconds

        stats = {
            "name": name,
            "iterations": len(times_us),
            "mean_us": statistics.mean(times_us),
            "median_us": statistics.median(times_us),
            "stdev_us": statistics.stdev(times_us) if len(times_us) > 1 else 0,
            "min_us": min(times_us),
            "max_us": max(times_us),
            "p95_us": sorted(times_us)[int(len(times_us) * 0.95)],
            "p99_us": sorted(times_us)[int(len(times_us) * 0.99)],
            "ops_per_sec": 1_000_000 / statistics.mean(times_us) if times_us else 0,
        }
        self.results[name] = stats
        return stats

    def run_all(self) -> Dict[str, Dict[str, Any]]:
        """Run all benchmarks and return results."""
        print(f"\nRunning Eligibility Resolver Benchmarks ({self.iterations} iterations each)...")
        print("-" * 60)

        benchmarks = [
            ("Single sensor", self.bench_single_sensor),
            ("Multi sensor (mixed outcomes)", self.bench_multi_sensor),
            ("Biometric or credential", self.bench_either_of),
            ("Failing collaborator queries", self.bench_failing_queries),
            ("Capability check", self.bench_can_authenticate),
            ("Concurrent evaluation", self.bench_concurrent_evaluation),
        ]

        for desc, bench_func in benchmarks:
            print(f"  {desc}...", end=" ", flush=True)
            result = bench_func()
            print(f"{result['mean_us']:.2f} µs (p99: {result['p99_us']:.2f} µs)")

        return self.results


if __name__ == "__main__":
    bench = ResolverBenchmarks(iterations=10000)
    bench.run_all()
