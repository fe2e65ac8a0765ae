"""
Scoring and policy filtering.

Modules
-------
scorer     : ScoreComponents + calculate_sbs() + cost_avoidance() +
             explain_score() + rank_scored(): pure functions.
safeguards : validate_finding() + apply_safeguards(): hard policy limits.
"""
