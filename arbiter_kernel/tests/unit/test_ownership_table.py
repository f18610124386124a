"""Unit tests for OwnershipTable."""

import pytest

from arbiter_kernel.resources import OwnershipTable


@pytest.fixture
def table(mock_logger, drive, arm):
    table = OwnershipTable(logger=mock_logger)
    table.register(drive)
    table.register(arm)
    return table


class TestRegistry:
    """Tests for registration and defaults."""

    def test_registration_order(self, table, drive, arm):
        assert table.registered() == [drive, arm]

    def test_duplicate_register_returns_false(self, table, drive):
        assert table.register(drive) is False
        assert len(table.registered()) == 2

    def test_unregistered_filters(self, table, drive, make_resource):
        stray = make_resource("stray")

        assert table.unregistered([drive, stray]) == [stray]
        assert table.is_registered(drive)
        assert not table.is_registered(stray)

    def test_default_roundtrip(self, table, drive, make_task):
        hold = make_task("hold", drive)

        table.set_default(drive, hold)

        assert table.get_default(drive) is hold
        table.set_default(drive, None)
        assert table.get_default(drive) is None


class TestOwnership:
    """Tests for allocate/release."""

    def test_allocate_assigns_every_resource(self, table, drive, arm, make_task):
        task = make_task("t", drive, arm)

        assert table.allocate(task, frozenset({drive, arm})) is True

        assert table.owner_of(drive) is task
        assert table.owner_of(arm) is task
        assert table.held_by(task) == frozenset({drive, arm})

    def test_allocate_conflict_allocates_nothing(self, table, drive, arm, make_task):
        owner = make_task("owner", drive)
        table.allocate(owner, frozenset({drive}))
        other = make_task("other", drive, arm)

        assert table.allocate(other, frozenset({drive, arm})) is False

        assert table.owner_of(arm) is None
        assert table.held_by(other) == frozenset()

    def test_allocate_twice_is_rejected(self, table, drive, arm, make_task):
        task = make_task("t", drive)
        table.allocate(task, frozenset({drive}))

        assert table.allocate(task, frozenset({arm})) is False
        assert table.owner_of(arm) is None

    def test_release_frees_resources(self, table, drive, arm, make_task):
        task = make_task("t", drive, arm)
        table.allocate(task, frozenset({drive, arm}))

        released = table.release(task)

        assert released == frozenset({drive, arm})
        assert table.owner_of(drive) is None
        assert table.idle_resources() == [drive, arm]

    def test_release_unknown_task_is_noop(self, table, make_task):
        assert table.release(make_task("t")) == frozenset()

    def test_owners_of_is_distinct_and_ordered(self, table, drive, arm, make_task):
        both = make_task("both", drive, arm)
        table.allocate(both, frozenset({drive, arm}))

        assert table.owners_of([drive, arm]) == [both]

    def test_release_all(self, table, drive, arm, make_task):
        table.allocate(make_task("t", drive), frozenset({drive}))

        table.release_all()

        assert table.ownership_snapshot() == {}
        assert table.idle_resources() == [drive, arm]

    def test_system_usage(self, table, drive, make_task):
        hold = make_task("hold", drive)
        table.set_default(drive, hold)
        table.allocate(hold, frozenset({drive}))

        usage = table.get_system_usage()

        assert usage == {
            "registered_resources": 2,
            "owned_resources": 1,
            "idle_resources": 1,
            "resources_with_default": 1,
            "owning_tasks": 1,
        }
