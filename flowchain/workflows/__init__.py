"""
Pipeline definitions

Pre-built pipelines for the demo and the API.
"""

from .text_pipeline import create_text_pipeline, SAMPLE_TEXT
from .task_classifier import create_task_classifier_pipeline, SAMPLE_TASK

__all__ = [
    "create_text_pipeline",
    "SAMPLE_TEXT",
    "create_task_classifier_pipeline",
    "SAMPLE_TASK"
]
