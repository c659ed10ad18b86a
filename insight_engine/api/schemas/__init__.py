"""Pydantic response models and query-string parsers."""
from .envelope import ApiResponse
from .queries import job_list_params, result_query_params

__all__ = ["ApiResponse", "job_list_params", "result_query_params"]
