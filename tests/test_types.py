"""Tests for the normalising column types."""

from __future__ import annotations

import enum
from datetime import datetime, timedelta, timezone

import pytest
import sqlalchemy as sa

from pgcontext.db.types import SnakeCaseEnum, UtcDateTime, as_utc, to_pascal_case, to_snake_case


class Status(enum.Enum):
    InProgress = 1
    DONE = 2
    on_hold = 3


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("InProgress", "in_progress"),
        ("IN_PROGRESS", "in_progress"),
        ("in-progress", "in_progress"),
        ("HTTPServer", "http_server"),
        ("done", "done"),
    ],
)
def test_to_snake_case(name: str, expected: str) -> None:
    assert to_snake_case(name) == expected


def test_to_pascal_case() -> None:
    assert to_pascal_case("in_progress") == "InProgress"
    assert to_pascal_case("done") == "Done"


class TestSnakeCaseEnum:
    def test_writes_snake_case(self):
        column_type = SnakeCaseEnum(Status)

        assert column_type.process_bind_param(Status.InProgress, None) == "in_progress"
        assert column_type.process_bind_param(Status.DONE, None) == "done"
        assert column_type.process_bind_param("on_hold", None) == "on_hold"

    def test_reads_declared_member(self):
        column_type = SnakeCaseEnum(Status)

        assert column_type.process_result_value("in_progress", None) is Status.InProgress
        assert column_type.process_result_value("done", None) is Status.DONE
        assert column_type.process_result_value(None, None) is None

    def test_unknown_token(self):
        with pytest.raises(ValueError, match="'archived' is not a valid Status"):
            SnakeCaseEnum(Status).process_result_value("archived", None)

    def test_nullable_variant(self):
        column_type = SnakeCaseEnum(Status, nullable=True)

        assert column_type.process_bind_param(None, None) == ""
        assert column_type.process_result_value("", None) is None
        assert column_type.process_result_value("  ", None) is None
        assert column_type.process_result_value("on_hold", None) is Status.on_hold

    def test_stored_as_text(self):
        engine = sa.create_engine("sqlite://")
        metadata = sa.MetaData()
        tasks = sa.Table(
            "tasks",
            metadata,
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("status", SnakeCaseEnum(Status, length=32)),
        )
        metadata.create_all(engine)

        with engine.begin() as connection:
            connection.execute(tasks.insert(), [{"id": 1, "status": Status.InProgress}])
            raw = connection.execute(sa.text("SELECT status FROM tasks")).scalar_one()
            loaded = connection.execute(sa.select(tasks.c.status)).scalar_one()

        assert raw == "in_progress"
        assert loaded is Status.InProgress


class TestUtcDateTime:
    def test_aware_values_are_converted(self):
        local = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))

        converted = UtcDateTime().process_bind_param(local, None)

        assert converted == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        assert converted.tzinfo is timezone.utc

    def test_naive_values_are_taken_as_local(self):
        naive = datetime(2024, 5, 1, 12, 0)

        assert as_utc(naive) == naive.astimezone(timezone.utc)
        assert as_utc(naive).tzinfo is timezone.utc

    def test_read_side_converts(self):
        value = datetime(2024, 1, 1, 3, 0, tzinfo=timezone(timedelta(hours=-5)))

        assert UtcDateTime().process_result_value(value, None) == datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)

    def test_none_passes_through(self):
        assert UtcDateTime().process_bind_param(None, None) is None
        assert UtcDateTime().process_result_value(None, None) is None
