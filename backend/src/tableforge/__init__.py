"""TableForge: declarative data tables with signed action, bulk and export endpoints."""

__version__ = "0.1.0"
