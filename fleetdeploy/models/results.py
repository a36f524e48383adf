"""
Result Models

Dataclass models for remote command output and deployment outcomes.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Iterable


@dataclass
class SSHResult:
    """Result of an SSH command execution."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    host: str = ""
    command: str = ""
    duration_seconds: float = 0.0

    @property
    def is_success(self) -> bool:
        """Check if SSH command succeeded."""
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        """Check if SSH command failed."""
        return self.returncode != 0

    def __repr__(self) -> str:
        return f"SSHResult(host={self.host}, returncode={self.returncode}, duration={self.duration_seconds:.2f}s)"


@dataclass(frozen=True)
class DeploymentOutcome:
    """Final result of deploying to one host."""

    host: str
    succeeded: bool
    failure_reason: Optional[str] = None

    @classmethod
    def success(cls, host: str) -> "DeploymentOutcome":
        return cls(host=host, succeeded=True)

    @classmethod
    def failure(cls, host: str, reason: str) -> "DeploymentOutcome":
        return cls(host=host, succeeded=False, failure_reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "host": self.host,
            "succeeded": self.succeeded,
            "failure_reason": self.failure_reason,
        }


@dataclass
class BatchSummary:
    """Aggregate view over every outcome of a batch."""

    outcomes: list[DeploymentOutcome] = field(default_factory=list)

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[DeploymentOutcome]) -> "BatchSummary":
        return cls(outcomes=list(outcomes))

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def failed_hosts(self) -> list[str]:
        """Addresses of failed hosts, in completion order."""
        return [outcome.host for outcome in self.outcomes if not outcome.succeeded]

    @property
    def failures(self) -> list[DeploymentOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "failed_hosts": self.failed_hosts,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }

    def __repr__(self) -> str:
        return f"BatchSummary(total={self.total}, succeeded={self.succeeded}, failed={self.failed})"
