"""Blocking-graph algorithms.

Every function here is pure: inputs are never mutated and nothing is cached
between calls. Cycles are tolerated everywhere; see `traversal.VisitState`.
"""
