"""CLI utility functions"""

from .output import (
    console,
    format_pipeline_result,
    format_status,
    functions_table,
    print_error,
)
from .progress import PipelineProgress

__all__ = [
    'console',
    'format_pipeline_result',
    'format_status',
    'functions_table',
    'print_error',

    # Progress utilities
    'PipelineProgress',
]
