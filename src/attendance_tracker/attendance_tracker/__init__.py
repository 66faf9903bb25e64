"""Attendance Tracker package.

Feature modules (calendars, streaks, statistics, attendance) each keep a pure
model, a repository interface with its MySQL implementation, and a service.
The container wires them into one aggregation engine.
"""
