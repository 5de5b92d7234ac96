"""Shared constants for servflow."""

DEFAULT_HTTP_METHOD = "POST"
DEFAULT_DELAY_UNIT_SECONDS = 60.0
DEFAULT_COUNTRY_CODE = "+1"

# trigger_data keys used to link created tasks back to their origin
TASK_JOB_KEY = "JobId"
TASK_USER_KEY = "UserId"
