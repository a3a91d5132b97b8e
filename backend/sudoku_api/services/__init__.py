"""Sudoku domain services: scoring, the daily ledger, leaderboards and the
challenge / live match lifecycles.

Routes and socket handlers import from here, keeping transport concerns
separated from the scoring and contest rules.
"""
