# models.py
"""
Data models used by the readiness checker.

- Keep simple, serializable dataclasses for check results.
- The assessment context is frozen; checks read it but never change it.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Optional


class Status(str, Enum):
    OK = "OK"
    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


@dataclass
class CheckResult:
    """
    Represents a single line of the readiness report.

    Fields:
    - check: registry id of the check that produced it (e.g., "vpc-count")
    - title: human-readable check title
    - status: OK, INFO, WARNING or CRITICAL
    - message: one-line description printed to the console
    - details: free-text details useful for triage (error codes, name lists)
    - metadata: optional structured metadata (counts, extraction path, region)
    """
    check: str
    title: str
    status: Status
    message: str
    details: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass(frozen=True)
class AssessmentContext:
    """
    Everything a check needs to know about the run.

    `session` is a boto3.Session (or a snapshot session in dummy mode).
    `region_source` records where the region came from: argument, profile,
    environment or cloudshell.
    """
    session: Any
    region: Optional[str] = None
    region_source: Optional[str] = None
    account_id: Optional[str] = None
    caller_arn: Optional[str] = None
    execution_env: Optional[str] = None
