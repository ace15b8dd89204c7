"""Asynchronous batch queue for report generation.

Producers enqueue tasks into a SQLite-backed queue and return immediately.
A sweep, started by the scheduler thread or by hand, claims pending tasks in
priority order, dispatches them to registered handlers and records each
outcome. Failed attempts go back to pending until ``max_attempts`` is used up.
"""
