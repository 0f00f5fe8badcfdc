"""Deal Tracker: multi-tenant sales pipeline tracker."""

__version__ = "0.1.0"
