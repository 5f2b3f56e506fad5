"""Several items saved, moved or deleted in one flush.

A flush runs the before-hooks of a whole batch before it writes any row,
so each item must see the shifts its siblings made.
"""

from __future__ import annotations

import pytest

from tests._support.lists import populate, positions, reload
from tests._support.models import Foo, FooParent, FooWithForeignKeyScope, Task


class TestBatchCreate:
    def test_add_all_enters_at_the_bottom_in_order(self, session):
        session.add_all([Foo(name=f"foo{i}") for i in range(3)])
        session.commit()

        assert positions(reload(session, Foo)) == [1, 2, 3]

    def test_add_all_after_existing_items(self, session):
        populate(session, Foo, count=3)
        session.add_all([Foo(name="late1"), Foo(name="late2")])
        session.commit()

        assert positions(reload(session, Foo)) == [1, 2, 3, 4, 5]

    def test_add_all_with_top_placement(self, session):
        session.add(Task(owner="alice", title="first"))
        session.commit()

        session.add_all([Task(owner="alice", title=f"t{i}") for i in range(3)])
        session.commit()

        tasks = reload(session, Task, Task.owner == "alice")
        assert sorted(positions(tasks)) == [0, 1, 2, 3]
        assert tasks[0].listcraft_position == 3

    def test_same_explicit_position_twice(self, session):
        populate(session, Foo, count=3)
        session.add_all([Foo(name="x", position=1), Foo(name="y", position=1)])
        session.commit()

        assert sorted(positions(reload(session, Foo))) == [1, 2, 3, 4, 5]


class TestBatchDelete:
    def test_two_deletes_in_one_commit(self, session):
        foos = populate(session, Foo, count=5)
        session.delete(foos[1])
        session.delete(foos[3])
        session.commit()

        assert positions(reload(session, Foo)) == [1, 2, 3]

    def test_delete_everything_but_the_last(self, session):
        foos = populate(session, Foo, count=4)
        for foo in foos[:3]:
            session.delete(foo)
        session.commit()

        assert positions(reload(session, Foo)) == [1]

    def test_delete_and_add_in_one_commit(self, session):
        foos = populate(session, Foo, count=5)
        session.delete(foos[1])
        session.add(Foo(name="new"))
        session.commit()

        assert positions(reload(session, Foo)) == [1, 2, 3, 4, 5]


@pytest.fixture
def parents(session):
    for parent_id in (19, 20):
        session.add(FooParent(id=parent_id, name=f"parent-{parent_id}"))
    session.commit()


class TestBatchScopeChange:
    def test_two_items_change_list_in_one_commit(self, session, parents):
        movers = populate(session, FooWithForeignKeyScope, count=4, prefix="a", parent_id=19)
        populate(session, FooWithForeignKeyScope, count=2, prefix="b", parent_id=20)

        movers[1].parent_id = 20
        movers[2].parent_id = 20
        session.commit()

        left = reload(session, FooWithForeignKeyScope, FooWithForeignKeyScope.parent_id == 19)
        assert positions(left) == [1, 2]
        joined = reload(session, FooWithForeignKeyScope, FooWithForeignKeyScope.parent_id == 20)
        assert sorted(positions(joined)) == [1, 2, 3, 4]

    def test_whole_list_moves(self, session, parents):
        movers = populate(session, FooWithForeignKeyScope, count=3, parent_id=19)
        populate(session, FooWithForeignKeyScope, count=1, prefix="b", parent_id=20)

        for mover in movers:
            mover.parent_id = 20
        session.commit()

        joined = reload(session, FooWithForeignKeyScope, FooWithForeignKeyScope.parent_id == 20)
        assert sorted(positions(joined)) == [1, 2, 3, 4]
        assert reload(session, FooWithForeignKeyScope, FooWithForeignKeyScope.parent_id == 19) == []
