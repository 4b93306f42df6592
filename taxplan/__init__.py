"""taxplan: baseline tax estimation and strategy impact analysis."""

__version__ = "0.1.0"
