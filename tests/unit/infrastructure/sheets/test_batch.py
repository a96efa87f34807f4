import pytest

from sheetsguard.infrastructure.sheets.batch import BatchOperations, chunk


def test_chunk():
    assert chunk([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert chunk([], 3) == []
    with pytest.raises(ValueError):
        chunk([1], 0)


async def test_batch_read_splits_and_preserves_order(fake_transport):
    ranges = [f"A{i}" for i in range(1, 251)]
    for r in ranges:
        fake_transport.sheets[("s1", r)] = [[r]]

    results = await BatchOperations(fake_transport).batch_read("s1", ranges)

    assert [item["range"] for item in results] == ranges
    assert [len(args[1]) for _, args in fake_transport.calls] == [100, 100, 50]


async def test_batch_write_returns_one_response_per_chunk(fake_transport):
    operations = [{"range": f"A{i}", "values": [[i]]} for i in range(5)]
    responses = await BatchOperations(fake_transport, max_batch_size=2).batch_write("s1", operations)
    assert len(responses) == 3
    assert fake_transport.sheets[("s1", "A4")] == [[4]]


async def test_batch_clear(fake_transport):
    responses = await BatchOperations(fake_transport, max_batch_size=10).batch_clear("s1", ["A1", "B1"])
    assert responses == [{"clearedRanges": ["A1", "B1"]}]


async def test_execute_batch_runs_requested_groups(fake_transport):
    batch = BatchOperations(fake_transport)
    result = await batch.execute_batch(
        "s1",
        writes=[{"range": "A1", "values": [["w"]]}],
        clears=["B1"],
        reads=["C1"],
    )
    assert set(result) == {"write_results", "clear_results", "read_results"}
    assert result["read_results"] == [{"range": "C1", "values": []}]


async def test_execute_batch_with_nothing_to_do(fake_transport):
    assert await BatchOperations(fake_transport).execute_batch("s1") == {}
    assert fake_transport.call_count() == 0
