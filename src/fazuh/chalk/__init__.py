"""Chalk: Blackboard Ultra session engine.

This package signs into a Blackboard Learn portal with Playwright, recovers the
session credentials from the page's own traffic, and reshapes the course and
activity stream responses into a simplified schema delivered as notifications.
"""
