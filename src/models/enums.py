from enum import Enum


class SyncAction(str, Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"  # Dry run
