"""Scoring, extraction and contradiction analysis components.

Every component here is a pure function of its inputs plus the current
time. Persistence of recomputed values is the caller's job.
"""
