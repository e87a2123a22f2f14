"""Tests de handlers contra SQLite en memoria."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from crag_api.errors import StorageOperationFailure, StorageUnavailable
from crag_api.handlers import IngestionHandler, QueryHandler, SummaryHandler
from crag_api.schemas import ReadingQueryIn, SensorReadingIn
from crag_api.storage import SensorReadingRow, StorageGateway

from conftest import T0, FakeClock


def _reading(wall_id: str = "wall-a", device_count: int = 1, **extra) -> SensorReadingIn:
    return SensorReadingIn(wall_id=wall_id, device_count=device_count, timestamp=1773478800000, **extra)


def _count_rows(storage: StorageGateway) -> int:
    with storage.engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(SensorReadingRow)).scalar_one()


@pytest.fixture
def ingestion(storage, clock) -> IngestionHandler:
    return IngestionHandler(storage, clock=clock)


@pytest.fixture
def query_handler(storage) -> QueryHandler:
    return QueryHandler(storage)


@pytest.fixture
def summary(storage) -> SummaryHandler:
    return SummaryHandler(storage)


# =============================================================================
# INGESTA
# =============================================================================

class TestIngestion:

    def test_ingest_assigns_id_and_server_time(self, ingestion, storage):
        first = ingestion.ingest(_reading())
        second = ingestion.ingest(_reading())

        assert second.id > first.id
        assert first.server_timestamp == T0
        assert second.server_timestamp == T0 + timedelta(seconds=1)
        assert _count_rows(storage) == 2

    def test_round_trip_preserves_fields(self, ingestion, query_handler, valid_reading):
        reading = SensorReadingIn(**valid_reading)
        result = ingestion.ingest(reading)

        [stored] = query_handler.query(ReadingQueryIn(wall_id=valid_reading["wall_id"]))

        assert stored.id == result.id
        for name, value in valid_reading.items():
            assert getattr(stored, name) == value
        # server_timestamp y created_at: mismo instante, del servidor
        assert stored.server_timestamp == T0
        assert stored.created_at == T0
        assert stored.server_timestamp.tzinfo == timezone.utc

    def test_server_time_comes_from_system_clock(self, storage, query_handler):
        before = datetime.now(timezone.utc)
        IngestionHandler(storage).ingest(_reading(wall_id="live"))

        [stored] = query_handler.query(ReadingQueryIn(wall_id="live"))

        assert stored.server_timestamp >= before
        assert stored.created_at == stored.server_timestamp

    def test_ingest_before_connect_fails(self, engine):
        handler = IngestionHandler(StorageGateway(engine=engine))

        with pytest.raises(StorageUnavailable):
            handler.ingest(_reading())


# =============================================================================
# CONSULTA
# =============================================================================

class TestQuery:

    def test_sorted_newest_first(self, ingestion, query_handler):
        for count in range(4):
            ingestion.ingest(_reading(device_count=count))

        rows = query_handler.query(ReadingQueryIn(wall_id="wall-a"))

        stamps = [r.server_timestamp for r in rows]
        assert len(rows) == 4
        assert all(a > b for a, b in zip(stamps, stamps[1:]))
        assert [r.device_count for r in rows] == [3, 2, 1, 0]

    def test_wall_filter(self, ingestion, query_handler):
        ingestion.ingest(_reading(wall_id="a"))
        ingestion.ingest(_reading(wall_id="b"))
        ingestion.ingest(_reading(wall_id="a"))

        rows = query_handler.query(ReadingQueryIn(wall_id="a"))

        assert {r.wall_id for r in rows} == {"a"}
        assert len(rows) == 2

    def test_single_instant_range_is_inclusive(self, ingestion, query_handler):
        ingestion.ingest(_reading(device_count=1))  # T1
        ingestion.ingest(_reading(device_count=2))  # T2
        ingestion.ingest(_reading(device_count=3))  # T3
        t2 = T0 + timedelta(seconds=1)

        rows = query_handler.query(ReadingQueryIn(start_time=t2, end_time=t2))

        assert [r.device_count for r in rows] == [2]

    def test_range_with_offset_bounds(self, ingestion, query_handler):
        for count in range(3):
            ingestion.ingest(_reading(device_count=count))
        start = (T0 + timedelta(seconds=1)).astimezone(timezone(timedelta(hours=-5)))

        rows = query_handler.query(ReadingQueryIn(start_time=start))

        assert [r.device_count for r in rows] == [2, 1]

    def test_inverted_range_returns_nothing(self, ingestion, query_handler):
        ingestion.ingest(_reading())

        rows = query_handler.query(
            ReadingQueryIn(start_time=T0 + timedelta(hours=1), end_time=T0 - timedelta(hours=1))
        )

        assert rows == []

    def test_limit_one(self, ingestion, query_handler):
        for _ in range(3):
            ingestion.ingest(_reading())

        rows = query_handler.query(ReadingQueryIn(limit=1))

        assert len(rows) == 1
        assert rows[0].server_timestamp == T0 + timedelta(seconds=2)

    def test_default_limit_is_100(self, ingestion, query_handler):
        for _ in range(105):
            ingestion.ingest(_reading())

        assert len(query_handler.query(ReadingQueryIn())) == 100
        assert len(query_handler.query(ReadingQueryIn(limit=1000))) == 105

    def test_reads_are_idempotent(self, ingestion, query_handler):
        for count in range(5):
            ingestion.ingest(_reading(wall_id=f"w{count % 2}", device_count=count))
        params = ReadingQueryIn(limit=3)

        assert query_handler.query(params) == query_handler.query(params)

    def test_empty_log(self, query_handler):
        assert query_handler.query(ReadingQueryIn()) == []


# =============================================================================
# RESUMEN POR MURO
# =============================================================================

class TestWallsSummary:

    def test_one_row_per_wall_with_last_inserted_count(self, ingestion, summary):
        ingestion.ingest(_reading(wall_id="A", device_count=3))
        ingestion.ingest(_reading(wall_id="A", device_count=5))
        ingestion.ingest(_reading(wall_id="B", device_count=1))

        walls = summary.walls()

        assert [w.wall_id for w in walls] == ["B", "A"]
        by_wall = {w.wall_id: w for w in walls}
        assert by_wall["A"].device_count == 5
        assert by_wall["A"].latest_reading == T0 + timedelta(seconds=1)
        assert by_wall["B"].latest_reading == T0 + timedelta(seconds=2)

    def test_count_follows_insertion_order_not_timestamp(self, storage, summary):
        # El último insertado tiene server_timestamp anterior (reloj que retrocede)
        clock = FakeClock()
        handler = IngestionHandler(storage, clock=clock)
        clock.set(T0 + timedelta(minutes=10))
        handler.ingest(_reading(wall_id="A", device_count=3))
        clock.set(T0)
        handler.ingest(_reading(wall_id="A", device_count=5))

        [wall] = summary.walls()

        assert wall.device_count == 5
        assert wall.latest_reading == T0 + timedelta(minutes=10)

    def test_empty_log(self, summary):
        assert summary.walls() == []

    def test_summary_is_read_only(self, ingestion, summary, storage):
        ingestion.ingest(_reading())

        assert summary.walls() == summary.walls()
        assert _count_rows(storage) == 1


# =============================================================================
# GATEWAY
# =============================================================================

class TestStorageGateway:

    def test_not_connected_raises(self, engine):
        gateway = StorageGateway(engine=engine)

        assert gateway.is_connected is False
        with pytest.raises(StorageUnavailable):
            gateway.ping()
        with pytest.raises(StorageUnavailable):
            QueryHandler(gateway).query(ReadingQueryIn())

    def test_close_then_use_raises(self, storage):
        storage.close()

        with pytest.raises(StorageUnavailable):
            SummaryHandler(storage).walls()

    def test_driver_failure_becomes_operation_failure(self, storage):
        with pytest.raises(StorageOperationFailure) as excinfo:
            with storage.transaction("insert", wall_id="wall-x"):
                raise IntegrityError("INSERT ...", {}, Exception("constraint"))

        assert excinfo.value.collection == "sensor_readings"
        assert excinfo.value.wall_id == "wall-x"
        assert "wall-x" in str(excinfo.value)

    def test_connection_loss_becomes_unavailable(self, storage):
        with pytest.raises(StorageUnavailable):
            with storage.transaction("find"):
                raise OperationalError("SELECT ...", {}, Exception("server closed the connection"))

    def test_connect_failure_is_unavailable(self):
        from sqlalchemy import create_engine

        gateway = StorageGateway(engine=create_engine("sqlite:////nonexistent-dir/x/y.db"))

        with pytest.raises(StorageUnavailable):
            gateway.connect()
        assert gateway.is_connected is False
