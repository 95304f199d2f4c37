"""Project-wide named constants.

Constants defined here replace inline magic numbers across the codebase.
"""

# Progress reported when a task enters each phase of the upload pipeline.
# There is no byte-level progress; values are tied to phase entry only.
PROGRESS_REQUESTING_SLOT: int = 10
PROGRESS_TRANSFERRING: int = 30
PROGRESS_CONFIRMING: int = 70
PROGRESS_DONE: int = 100

# Sentinel progress value for a failed task.  Never a valid percentage.
PROGRESS_ERROR: int = -1

# Seconds between the end-of-batch summary and the state reset + refresh.
DEFAULT_RESET_DELAY_SECONDS: float = 1.0
