# pixelmatch/orchestrators/__init__.py

from .comparison import AnalysisOutcome, ComparisonOrchestrator
from .review import ReviewWorkflow

__all__ = ["AnalysisOutcome", "ComparisonOrchestrator", "ReviewWorkflow"]
