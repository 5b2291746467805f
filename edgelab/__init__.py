"""
EdgeLab: Player-Prop Filter Evaluation and Backtesting

Evaluates user-defined multi-condition filters over enriched player game
logs and simulates flat-stake wagering on historical matches.
"""

__version__ = "0.1.0"
