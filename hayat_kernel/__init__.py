"""HAYAT Kernel — household obligation agents, scoring, orchestration and trace ledger."""

__version__ = "0.1.0"
