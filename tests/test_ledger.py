"""
Tests for the ExpenseList ledger

Covers the aggregation rules, parsing, search, change notification
and concurrent mutation. Persistence lives in test_persistence.py.
"""

import math
import threading

import pytest

from expense_tracker.audit import AuditLogger
from expense_tracker.exceptions import InvalidArgumentError, NullArgumentError
from expense_tracker.ledger import ExpenseList
from expense_tracker.models.audit import AuditEventType
from expense_tracker.models.expense import Expense, ExpenseID


def make(value: int, category: str, amount: float) -> Expense:
    return Expense(ExpenseID(value), category, amount)


@pytest.fixture
def ledger(tmp_path):
    return ExpenseList(data_file=tmp_path / "expenses.csv")


class TestAddExpense:
    """Tests for merge-on-add semantics."""

    def test_add_new_category(self, ledger):
        """Test adding to an empty ledger inserts the expense as-is."""
        ledger.add_expense(make(1, "Food", 12.5))

        expenses = ledger.get_expenses()
        assert len(expenses) == 1
        assert expenses[0].id == ExpenseID(1)
        assert expenses[0].category == "Food"
        assert expenses[0].amount == 12.5

    def test_add_merges_case_and_whitespace_variants(self, ledger):
        """Test "Food" and "  food " share one aggregate."""
        ledger.add_expense(make(1, "Food", 10.0))
        ledger.add_expense(make(2, "  food ", 5.25))

        expenses = ledger.get_expenses()
        assert len(expenses) == 1
        assert expenses[0].amount == 15.25

    def test_merge_keeps_existing_id_and_spelling(self, ledger):
        """Test the first-seen aggregate survives a merge."""
        ledger.add_expense(make(1, "Food", 10.0))
        ledger.add_expense(make(2, "FOOD", 1.0))

        survivor = ledger.get_expenses()[0]
        assert survivor.id == ExpenseID(1)
        assert survivor.category == "Food"

    def test_insertion_order_is_preserved(self, ledger):
        """Test iteration follows first-seen category order."""
        ledger.add_expense(make(1, "Rent", 100.0))
        ledger.add_expense(make(2, "Food", 10.0))
        ledger.add_expense(make(3, "rent", 50.0))
        ledger.add_expense(make(4, "Travel", 20.0))

        assert [e.category for e in ledger.get_expenses()] == ["Rent", "Food", "Travel"]

    def test_add_none_raises(self, ledger):
        """Test that None is rejected."""
        with pytest.raises(NullArgumentError):
            ledger.add_expense(None)

    def test_total_matches_sum_of_entries(self, ledger):
        """Test get_total equals the sum over get_expenses."""
        for i, (category, amount) in enumerate(
            [("Food", 1.1), ("Rent", 2.2), ("food", 3.3), ("Fun", 0.0)], start=1
        ):
            ledger.add_expense(make(i, category, amount))

        assert ledger.get_total() == sum(e.amount for e in ledger.get_expenses())

    def test_total_of_empty_ledger(self, ledger):
        """Test an empty ledger totals to zero."""
        assert ledger.get_total() == 0.0
        assert len(ledger) == 0


class TestRemoveExpense:
    """Tests for remove_expense."""

    def test_remove_by_category(self, ledger):
        """Test removal uses the normalized category, not the id."""
        ledger.add_expense(make(1, "Food", 10.0))
        ledger.add_expense(make(2, "Rent", 50.0))

        ledger.remove_expense(make(99, " FOOD", 0.0))

        assert [e.category for e in ledger.get_expenses()] == ["Rent"]

    def test_remove_missing_is_noop_but_notifies(self, ledger):
        """Test removing an unknown category still notifies."""
        calls = []
        ledger.add_observer(lambda: calls.append("changed"))

        ledger.remove_expense(make(1, "Nothing", 1.0))
        ledger.remove_expense(None)

        assert ledger.get_expenses() == ()
        assert calls == ["changed", "changed"]


class TestUpdateExpense:
    """Tests for update_expense."""

    def test_update_unknown_id_returns_false(self, ledger):
        """Test a missing id is reported without notification."""
        calls = []
        ledger.add_expense(make(1, "Food", 10.0))
        ledger.add_observer(lambda: calls.append("changed"))

        assert ledger.update_expense(ExpenseID(42), "Food", 1.0) is False
        assert calls == []
        assert ledger.get_expenses()[0].amount == 10.0

    def test_update_amount_in_place(self, ledger):
        """Test re-pricing an aggregate keeps its id."""
        ledger.add_expense(make(1, "Food", 10.0))

        assert ledger.update_expense(ExpenseID(1), "Food", 4.0) is True

        updated = ledger.get_expenses()[0]
        assert updated.id == ExpenseID(1)
        assert updated.amount == 4.0

    def test_update_moves_to_new_category(self, ledger):
        """Test moving to a fresh category re-inserts at the end."""
        ledger.add_expense(make(1, "Food", 10.0))
        ledger.add_expense(make(2, "Rent", 50.0))

        assert ledger.update_expense(ExpenseID(1), "Groceries", 12.0) is True

        expenses = ledger.get_expenses()
        assert [e.category for e in expenses] == ["Rent", "Groceries"]
        assert expenses[1].id == ExpenseID(1)
        assert expenses[1].amount == 12.0

    def test_update_into_existing_category_merges(self, ledger):
        """Test the pre-existing aggregate's id survives a merge."""
        ledger.add_expense(make(1, "Food", 10.0))
        ledger.add_expense(make(2, "Rent", 50.0))

        assert ledger.update_expense(ExpenseID(1), "rent", 5.0) is True

        expenses = ledger.get_expenses()
        assert len(expenses) == 1
        assert expenses[0].id == ExpenseID(2)
        assert expenses[0].category == "Rent"
        assert expenses[0].amount == 55.0

    def test_update_notifies(self, ledger):
        """Test a successful update notifies observers once."""
        calls = []
        ledger.add_expense(make(1, "Food", 10.0))
        ledger.add_observer(lambda: calls.append("changed"))

        ledger.update_expense(ExpenseID(1), "Food", 1.0)
        assert calls == ["changed"]

    def test_update_validates_arguments(self, ledger):
        """Test invalid update arguments raise."""
        with pytest.raises(NullArgumentError):
            ledger.update_expense(None, "Food", 1.0)
        with pytest.raises(NullArgumentError):
            ledger.update_expense(ExpenseID(1), None, 1.0)
        with pytest.raises(InvalidArgumentError):
            ledger.update_expense(ExpenseID(1), "", 1.0)
        with pytest.raises(InvalidArgumentError):
            ledger.update_expense(ExpenseID(1), "Food", -1.0)

    @pytest.mark.parametrize("amount", [math.nan, math.inf])
    def test_rejected_amount_leaves_ledger_unchanged(self, ledger, amount):
        """Test a non-finite amount raises without dropping the aggregate."""
        calls = []
        ledger.add_expense(make(1, "Food", 5.0))
        ledger.add_observer(lambda: calls.append("changed"))

        with pytest.raises(InvalidArgumentError):
            ledger.update_expense(ExpenseID(1), "Travel", amount)

        assert [(e.id.value, e.category, e.amount) for e in ledger.get_expenses()] == [
            (1, "Food", 5.0),
        ]
        assert calls == []

    def test_overflowing_merge_leaves_ledger_unchanged(self, ledger):
        """Test a merge whose total is not finite keeps both aggregates."""
        ledger.add_expense(make(1, "Food", 1e308))
        ledger.add_expense(make(2, "Rent", 1e308))

        with pytest.raises(InvalidArgumentError):
            ledger.update_expense(ExpenseID(1), "Rent", 1e308)

        assert [(e.id.value, e.category, e.amount) for e in ledger.get_expenses()] == [
            (1, "Food", 1e308),
            (2, "Rent", 1e308),
        ]


class TestSnapshots:
    """Tests that read results are detached from the ledger."""

    def test_get_expenses_is_a_snapshot(self, ledger):
        """Test later mutations do not change an earlier snapshot."""
        ledger.add_expense(make(1, "Food", 10.0))
        snapshot = ledger.get_expenses()

        ledger.add_expense(make(2, "Rent", 50.0))
        ledger.add_expense(make(3, "food", 1.0))

        assert len(snapshot) == 1
        assert snapshot[0].amount == 10.0
        assert isinstance(snapshot, tuple)


class TestParseExpense:
    """Tests for parse_expense."""

    def test_parse_simple(self, ledger):
        """Test the canonical "Food:12.50" form."""
        expense = ledger.parse_expense("Food:12.50", ExpenseID(1))
        assert expense is not None
        assert expense.category == "Food"
        assert expense.amount == 12.5
        assert expense.id == ExpenseID(1)

    def test_parse_allows_whitespace(self, ledger):
        """Test whitespace around the parts is ignored."""
        expense = ledger.parse_expense("  Eating out  :  7  ", ExpenseID(2))
        assert expense.category == "Eating out"
        assert expense.amount == 7.0

    def test_parse_signed_and_fractional(self, ledger):
        """Test "+3" and ".5" amounts."""
        assert ledger.parse_expense("Fun:+3", ExpenseID(1)).amount == 3.0
        assert ledger.parse_expense("Fun:.5", ExpenseID(1)).amount == 0.5

    @pytest.mark.parametrize("text", [
        "Food:-5",
        "bogus",
        "Food:",
        ":12",
        "Food:12:13",
        "Food:12.5.1",
        "Food:abc",
        "",
        "Food:" + "9" * 400,
    ])
    def test_parse_rejects(self, ledger, text):
        """Test malformed input yields None rather than raising."""
        assert ledger.parse_expense(text, ExpenseID(1)) is None

    def test_parse_none_text(self, ledger):
        """Test None input yields None."""
        assert ledger.parse_expense(None, ExpenseID(1)) is None

    def test_parse_requires_id(self, ledger):
        """Test a missing id raises."""
        with pytest.raises(NullArgumentError):
            ledger.parse_expense("Food:1", None)

    def test_parse_does_not_mutate(self, ledger):
        """Test parsing alone adds nothing."""
        ledger.parse_expense("Food:1", ExpenseID(1))
        assert ledger.get_expenses() == ()


class TestSearchByRegex:
    """Tests for search_by_regex."""

    @pytest.fixture
    def populated(self, ledger):
        ledger.add_expense(make(1, "Food", 10.0))
        ledger.add_expense(make(2, "Rent", 50.0))
        ledger.add_expense(make(3, "football", 5.0))
        return ledger

    def test_substring_match_is_case_insensitive(self, populated):
        """Test "foo" finds Food and football in ledger order."""
        result = populated.search_by_regex("foo")
        assert [e.category for e in result] == ["Food", "football"]

    def test_regex_match(self, populated):
        """Test anchored regular expressions."""
        result = populated.search_by_regex("^r")
        assert [e.category for e in result] == ["Rent"]

    def test_invalid_pattern_returns_empty(self, populated):
        """Test an invalid regex yields an empty result."""
        assert populated.search_by_regex("foo(") == ()
        assert populated.search_by_regex("[") == ()

    def test_none_pattern_returns_empty(self, populated):
        """Test None yields an empty result."""
        assert populated.search_by_regex(None) == ()

    def test_no_match(self, populated):
        """Test a pattern that matches nothing."""
        assert populated.search_by_regex("xyz") == ()


class TestObservers:
    """Tests for change notification through the ledger."""

    def test_add_notifies(self, ledger):
        """Test every add notifies each observer once."""
        calls = []
        ledger.add_observer(lambda: calls.append(len(ledger)))

        ledger.add_expense(make(1, "Food", 1.0))
        ledger.add_expense(make(2, "food", 1.0))

        assert calls == [1, 1]

    def test_observer_can_reenter_ledger(self, ledger):
        """Test a callback may read the ledger without deadlocking."""
        seen = []
        ledger.add_observer(lambda: seen.append(ledger.get_total()))

        ledger.add_expense(make(1, "Food", 2.0))

        assert seen == [2.0]

    def test_removed_observer_is_not_called(self, ledger):
        """Test remove_observer stops delivery."""
        calls = []

        def observer():
            calls.append(1)

        ledger.add_observer(observer)
        ledger.remove_observer(observer)
        ledger.add_expense(make(1, "Food", 1.0))

        assert calls == []

    def test_failing_observer_does_not_break_add(self, ledger):
        """Test a raising observer is isolated and audited."""
        calls = []

        def broken():
            raise RuntimeError("view crashed")

        ledger.add_observer(broken)
        ledger.add_observer(lambda: calls.append(1))

        ledger.add_expense(make(1, "Food", 1.0))

        assert calls == [1]
        assert ledger.get_total() == 1.0
        failures = [
            e for e in ledger.audit_logger.recent_events()
            if e.event_type == AuditEventType.OBSERVER_FAILED
        ]
        assert len(failures) == 1
        assert failures[0].error_message == "view crashed"


class TestAuditTrail:
    """Tests that mutations are recorded."""

    def test_add_and_merge_are_audited(self, tmp_path):
        """Test add then merge produce distinct audit events."""
        audit = AuditLogger()
        ledger = ExpenseList(data_file=tmp_path / "x.csv", audit_logger=audit)

        ledger.add_expense(make(1, "Food", 1.0))
        ledger.add_expense(make(2, "food", 2.0))

        types = [e.event_type for e in audit.recent_events()]
        assert types == [AuditEventType.EXPENSE_MERGED, AuditEventType.EXPENSE_ADDED]

    def test_update_merge_records_survivor(self, ledger):
        """Test an update that merges names the surviving aggregate."""
        ledger.add_expense(make(1, "Food", 1.0))
        ledger.add_expense(make(2, "Rent", 2.0))
        ledger.update_expense(ExpenseID(1), "Rent", 3.0)

        event = ledger.audit_logger.recent_events(limit=1)[0]
        assert event.event_type == AuditEventType.EXPENSE_UPDATED
        assert event.expense_id == 1
        assert event.details["merged_into"] == 2


class TestConcurrency:
    """Tests for concurrent mutation."""

    def test_concurrent_adds_do_not_lose_updates(self, ledger):
        """Test N concurrent adds of 1.0 sum to N."""
        workers = 8
        per_worker = 50
        barrier = threading.Barrier(workers)

        def work(worker: int):
            barrier.wait()
            for i in range(per_worker):
                ledger.add_expense(make(worker * per_worker + i, "Food", 1.0))

        threads = [threading.Thread(target=work, args=(w,)) for w in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        expenses = ledger.get_expenses()
        assert len(expenses) == 1
        assert expenses[0].amount == float(workers * per_worker)

    def test_concurrent_observer_reentry(self, ledger):
        """Test observers reading the ledger during concurrent adds."""
        totals = []
        ledger.add_observer(lambda: totals.append(ledger.get_total()))

        threads = [
            threading.Thread(target=ledger.add_expense, args=(make(i, f"C{i % 3}", 1.0),))
            for i in range(30)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(totals) == 30
        assert ledger.get_total() == 30.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
