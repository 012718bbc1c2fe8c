"""Constants for the large file upload protocol."""

# Slices must be multiples of 320 KiB, except the final one.
RANGE_ALIGNMENT = 327680
DEFAULT_RANGE_SIZE = 16 * RANGE_ALIGNMENT  # (5mb)
MAX_RANGE_SIZE = 60 * 1024 * 1024

DEFAULT_MAX_RETRIES = 5
MAX_BACKOFF_SECONDS = 30

# Environment overrides for the defaults above
RANGE_SIZE_ENV = "LARGEUPLOAD_RANGE_SIZE"
MAX_RETRIES_ENV = "LARGEUPLOAD_MAX_RETRIES"

SLICE_TIMEOUT_SECONDS = 300

CONTINUE_CODE = 202
FINAL_SUCCESS_CODES = {200, 201}
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}

COMPLETED_TASK_MESSAGE = (
    "Task with which you are trying to upload is already completed, "
    "Please check for your uploaded file"
)
