"""Vintage marketplace backend core.

Repositories run hand-written SQL through a querier that is either a pooled
connection or an open transaction. Stores wrap repositories in a unit of
work, and services pair those transactions with compensated blob uploads.
"""
