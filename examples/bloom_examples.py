"""
Examples of BloomBox usage

Demonstrates sizing, membership, persistence and merging
"""
from bloombox import BloomFilter, LockedBloomFilter, compute_parameters, configure_logging


def example_1_sizing():
    """
    Example 1: How big is a filter?

    Use case: Budget memory before building a filter
    """
    print("=" * 60)
    print("Example 1: Sizing")
    print("=" * 60)

    for n, p in [(1_000, 0.01), (1_000_000, 0.01), (1_000_000, 0.0001)]:
        bits, k = compute_parameters(n, p)
        print(f"  n={n:>9,} p={p:<7} -> {bits:>12,} bits ({bits / 8 / 1024:,.1f} KB), k={k}")
    print()


def example_2_membership():
    """
    Example 2: Seen-before checks

    Use case: Skip URLs a crawler has already visited
    """
    print("=" * 60)
    print("Example 2: Membership")
    print("=" * 60)

    bf = BloomFilter(expected_items=10_000, target_fp_rate=0.01)
    for i in range(10_000):
        bf.insert(f"https://example.com/page/{i}")

    print(f"  page/42 seen:     {'https://example.com/page/42' in bf}")
    print(f"  page/99999 seen:  {'https://example.com/page/99999' in bf}")

    false_positives = sum(
        1 for i in range(10_000, 110_000) if f"https://example.com/page/{i}" in bf
    )
    print(f"  Observed FP rate: {false_positives / 100_000:.4f} (target 0.01)")
    print(f"  Stats: {bf.stats().model_dump()}")
    print()


def example_3_persistence():
    """
    Example 3: Save and restore

    Use case: Ship a prebuilt filter to clients
    """
    print("=" * 60)
    print("Example 3: Serialization")
    print("=" * 60)

    bf = BloomFilter(1_000, 0.001)
    bf.update(f"user_{i}" for i in range(1_000))

    data = bf.serialize()
    restored = BloomFilter.deserialize(data)

    print(f"  Serialized size: {len(data):,} bytes")
    print(f"  Identical after round trip: {restored == bf}")
    print()


def example_4_merge_and_share():
    """
    Example 4: Merge per-worker filters, then share one between threads

    Use case: Workers build filters independently, a coordinator combines them
    """
    print("=" * 60)
    print("Example 4: Union and locking")
    print("=" * 60)

    workers = [BloomFilter(5_000, 0.01) for _ in range(3)]
    for w, bf in enumerate(workers):
        bf.update(f"user_{w}_{i}" for i in range(1_000))

    combined = workers[0] | workers[1] | workers[2]
    shared = LockedBloomFilter(combined)

    print(f"  Inserts across workers: {len(shared)}")
    print(f"  user_2_500 present: {'user_2_500' in shared}")
    print(f"  Estimated FP rate now: {combined.estimated_false_positive_rate():.5f}")
    print()


if __name__ == "__main__":
    configure_logging()
    example_1_sizing()
    example_2_membership()
    example_3_persistence()
    example_4_merge_and_share()
