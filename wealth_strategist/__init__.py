"""
Wealth Strategist: rule-based personal finance strategy engine.

Pipeline: aggregate → analyze (8 analyzers, in parallel) → score (SBS)
→ safeguard filter → conflict resolution.  A scenario forecast engine runs
over the same ``DataPacket`` outside the recommendation path.
"""

__version__ = "0.1.0"
