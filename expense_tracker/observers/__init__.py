"""Observer (change notification) package."""

from expense_tracker.observers.subject import ChangeNotifier, Observer

__all__ = ["ChangeNotifier", "Observer"]
