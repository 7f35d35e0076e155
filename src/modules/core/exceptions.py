"""Cross-cutting exceptions shared by all modules."""

from __future__ import annotations


class StoreError(Exception):
    """The relational store failed (connectivity or constraint violation).

    Raised by repositories, never retried by the service layer, and
    surfaced to API clients as HTTP 500.
    """


class WorkRejected(Exception):
    """A worker pool refused a unit of work because it is saturated or stopped."""
