"""API router package for endpoint composition."""

from .environment import (
	api_create_environment_router,
	api_serialize_execution_result,
	api_serialize_lifecycle_run_record,
	api_serialize_status_report,
)
from .health import api_create_health_router

__all__ = [
	"api_create_environment_router",
	"api_create_health_router",
	"api_serialize_execution_result",
	"api_serialize_lifecycle_run_record",
	"api_serialize_status_report",
]
