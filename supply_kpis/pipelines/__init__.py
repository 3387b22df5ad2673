from .recompute import RecomputePipeline
from .report import ReportPipeline

__all__ = ["RecomputePipeline", "ReportPipeline"]
