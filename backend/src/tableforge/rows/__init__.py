"""Row pipeline - per-row display values, action state and selectability."""

from tableforge.rows.pipeline import SELECTABLE_KEY, RowPipeline

__all__ = ["RowPipeline", "SELECTABLE_KEY"]
