"""
DemoGuard Pipeline - runs detectors over a replay.
"""

from demoguard.pipeline.runner import AnalysisPipeline, AnalysisResult, PipelineError, default_pipeline

__all__ = [
    "AnalysisPipeline",
    "AnalysisResult",
    "PipelineError",
    "default_pipeline",
]
