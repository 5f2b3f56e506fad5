"""Moving items between lists, and scope errors raised during a flush."""

from __future__ import annotations

import pytest
from sqlalchemy import select

from listcraft import (
    DerivedPredicate,
    InvalidQueryError,
    NullForeignKeyError,
    NullScopeError,
    RawPredicate,
)
from tests._support.lists import populate, positions, reload
from tests._support.models import (
    FooParent,
    FooWithForeignKeyScope,
    FooWithQueryScope,
    FooWithStringScope,
    FooWithStringScopeB,
    company_scope,
)


# =========================================================================
# Raw SQL scope
# =========================================================================


class TestRawScopeChange:
    def test_change_scope_before_update(self, session):
        populate(session, FooWithStringScopeB, company="companyB")

        foo1 = FooWithStringScope(name="Test1", company="TestCompany1")
        foo1.set_listcraft_config(scope=RawPredicate("company = 'TestCompany1'"))
        session.add(foo1)
        session.commit()

        foo2 = FooWithStringScope(name="Test2", company="TestCompany1")
        foo2.set_listcraft_config(scope=RawPredicate("company = 'TestCompany1'"))
        session.add(foo2)
        session.commit()

        assert foo1.listcraft_position == 1
        assert foo2.listcraft_position == 2

        foo1.company = "TestCompany2"
        foo1.set_listcraft_config(scope=RawPredicate("company = 'TestCompany2'"))
        session.commit()

        assert foo1.listcraft_position == 1
        session.refresh(foo2)
        assert foo2.listcraft_position == 1

        twins = reload(session, FooWithStringScopeB, FooWithStringScopeB.company == "companyB")
        assert positions(twins) == list(range(1, 11))

    def test_callable_scope_follows_the_item(self, session):
        scope = RawPredicate(lambda item: f"company = '{item.company}'")
        items = []
        for name, company in [("a1", "A"), ("a2", "A"), ("a3", "A"), ("b1", "B")]:
            item = FooWithStringScope(name=name, company=company)
            item.set_listcraft_config(scope=scope)
            session.add(item)
            session.commit()
            items.append(item)

        a1, a2, a3, b1 = items
        assert positions(items) == [1, 2, 3, 1]

        a2.company = "B"
        session.commit()

        assert a2.listcraft_position == 2
        session.refresh(a3)
        session.refresh(b1)
        assert (a1.listcraft_position, a3.listcraft_position, b1.listcraft_position) == (1, 2, 1)

    def test_item_leaving_with_top_placement_goes_to_top(self, session):
        scope = RawPredicate(lambda item: f"company = '{item.company}'")
        items = []
        for name, company in [("a1", "A"), ("a2", "A"), ("b1", "B"), ("b2", "B")]:
            item = FooWithStringScope(name=name, company=company)
            item.set_listcraft_config(scope=scope, placement="top")
            session.add(item)
            session.commit()
            items.append(item)

        a1, a2, b1, b2 = items
        session.expire_all()
        # Each new item went to the top of its list
        assert positions(items) == [2, 1, 2, 1]

        a1.company = "B"
        session.commit()

        session.expire_all()
        assert positions(items) == [1, 1, 3, 2]


# =========================================================================
# Foreign key scope
# =========================================================================


@pytest.fixture
def parents(session):
    for parent_id in (19, 20):
        session.add(FooParent(id=parent_id, name=f"parent-{parent_id}"))
    session.commit()


class TestForeignKeyScopeChange:
    def test_change_scope_before_update(self, session, parents):
        foo1 = FooWithForeignKeyScope(name="Test1", parent_id=19)
        session.add(foo1)
        session.commit()
        foo2 = FooWithForeignKeyScope(name="Test2", parent_id=19)
        session.add(foo2)
        session.commit()

        assert foo1.listcraft_position == 1
        assert foo2.listcraft_position == 2

        foo1.parent_id = 20
        session.commit()

        assert foo1.listcraft_position == 1
        session.refresh(foo2)
        assert foo2.listcraft_position == 1

    def test_moving_into_a_populated_list_goes_to_bottom(self, session, parents):
        populate(session, FooWithForeignKeyScope, count=3, parent_id=20)
        mover = FooWithForeignKeyScope(name="mover", parent_id=19)
        session.add(mover)
        session.commit()

        mover.parent_id = 20
        session.commit()

        assert mover.listcraft_position == 4
        targets = reload(session, FooWithForeignKeyScope, FooWithForeignKeyScope.parent_id == 20)
        assert sorted(positions(targets)) == [1, 2, 3, 4]

    def test_null_scope_raises(self, session):
        foo = FooWithForeignKeyScope(name="FooHasNullScope")
        foo.set_listcraft_config(scope=None)
        session.add(foo)

        with pytest.raises(NullScopeError):
            session.flush()
        session.rollback()

    def test_null_foreign_key_raises(self, session):
        foo = FooWithForeignKeyScope(name="FooHasNoForeignKey")
        session.add(foo)

        with pytest.raises(NullForeignKeyError):
            session.flush()
        session.rollback()


# =========================================================================
# Derived (select) scope
# =========================================================================


class TestDerivedScopeChange:
    def test_change_scope_before_update(self, session):
        foo1 = FooWithQueryScope(name="Test1", company="TestCompany1")
        foo1.set_listcraft_config(scope=company_scope("TestCompany1"))
        session.add(foo1)
        session.commit()

        foo2 = FooWithQueryScope(name="Test2", company="TestCompany1")
        foo2.set_listcraft_config(scope=company_scope("TestCompany1"))
        session.add(foo2)
        session.commit()

        assert foo1.listcraft_position == 1
        assert foo2.listcraft_position == 2

        # Only the configuration changes; no column is touched
        foo1.set_listcraft_config(scope=company_scope("TestCompany2"))
        session.commit()

        assert foo1.listcraft_position == 1
        session.refresh(foo2)
        assert foo2.listcraft_position == 1

    def test_scope_without_where_raises(self, session):
        foo = FooWithQueryScope(name="New", company="ACME")
        foo.set_listcraft_config(
            scope=DerivedPredicate(lambda item: select(FooWithQueryScope).order_by(FooWithQueryScope.id))
        )
        session.add(foo)

        with pytest.raises(InvalidQueryError):
            session.flush()
        session.rollback()

    def test_scope_may_be_a_bare_expression(self, session):
        scope = DerivedPredicate(lambda item: FooWithQueryScope.company == item.company)
        for name in ("x1", "x2"):
            item = FooWithQueryScope(name=name, company="X")
            item.set_listcraft_config(scope=scope)
            session.add(item)
            session.commit()

        items = reload(session, FooWithQueryScope, FooWithQueryScope.company == "X")
        assert positions(items) == [1, 2]
