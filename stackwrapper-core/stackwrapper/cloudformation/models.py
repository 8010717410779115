import dataclasses
import datetime
import enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from stackwrapper.aws.regions import Region
from stackwrapper.constants import MIN_STACK_TIMEOUT, TEST_STACK_TIMEOUT


class StackStatus(str, enum.Enum):
    """The CloudFormation stack states the controller reacts to."""

    CREATE_IN_PROGRESS = "CREATE_IN_PROGRESS"
    CREATE_COMPLETE = "CREATE_COMPLETE"
    CREATE_FAILED = "CREATE_FAILED"
    ROLLBACK_IN_PROGRESS = "ROLLBACK_IN_PROGRESS"
    ROLLBACK_COMPLETE = "ROLLBACK_COMPLETE"
    ROLLBACK_FAILED = "ROLLBACK_FAILED"
    DELETE_IN_PROGRESS = "DELETE_IN_PROGRESS"
    DELETE_COMPLETE = "DELETE_COMPLETE"
    DELETE_FAILED = "DELETE_FAILED"
    UPDATE_COMPLETE = "UPDATE_COMPLETE"


class StackMode(str, enum.Enum):
    """What a configured stack entry is used for."""

    CREATE = "create"
    """create the stack, and keep it after the job"""
    CREATE_AND_DELETE = "create_and_delete"
    """create the stack, and delete it when the job ends"""
    DELETE_ONLY = "delete_only"
    """delete an existing stack"""

    @property
    def creates(self) -> bool:
        return self is not StackMode.DELETE_ONLY


@dataclasses.dataclass(frozen=True)
class Credentials:
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    session_token: Optional[str] = None

    def __repr__(self):
        # never print the secrets
        return f"Credentials(access_key={self.access_key!r})"


def effective_timeout(timeout: int) -> int:
    """
    Returns the timeout (in seconds) actually applied to a stack creation: values below ``MIN_STACK_TIMEOUT`` are
    raised to it, and the test timeout disables the bound altogether (0).
    """
    if timeout == TEST_STACK_TIMEOUT:
        return 0
    return timeout if timeout > MIN_STACK_TIMEOUT else MIN_STACK_TIMEOUT


@dataclasses.dataclass(frozen=True)
class StackSpec:
    """
    Everything needed to create or delete one stack. The name, prefix, credentials and parameters are already
    expanded against the build environment.
    """

    name: str
    template_body: str = ""
    parameters: Mapping[str, str] = dataclasses.field(default_factory=dict)
    output_prefix: Optional[str] = None
    timeout: int = 0
    credentials: Credentials = dataclasses.field(default_factory=Credentials)
    region: Region = dataclasses.field(default_factory=Region.default)
    mode: StackMode = StackMode.CREATE
    settle_delay: float = 0
    prefix_selected: bool = False

    def __post_init__(self):
        # keep the parameter order, but do not allow changes after creation
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters or {})))

    @property
    def auto_delete(self) -> bool:
        return self.mode is StackMode.CREATE_AND_DELETE

    @property
    def effective_timeout(self) -> int:
        return effective_timeout(self.timeout)

    @property
    def is_test_timeout(self) -> bool:
        return self.timeout == TEST_STACK_TIMEOUT


@dataclasses.dataclass
class StackState:
    """The mutable state of a stack, owned by exactly one controller."""

    name: str
    status: Optional[str] = None
    status_reason: Optional[str] = None
    stack_id: Optional[str] = None
    outputs: Optional[Dict[str, str]] = None
    started: Optional[float] = None

    def update(self, stack: Mapping) -> None:
        """Takes over status information from a ``DescribeStacks`` result entry."""
        self.status = stack.get("StackStatus")
        self.status_reason = stack.get("StackStatusReason")
        self.stack_id = stack.get("StackId") or self.stack_id

    def describe(self) -> str:
        return (
            f"name={self.name}, id={self.stack_id}, status={self.status}, "
            f"reason={self.status_reason}"
        )


@dataclasses.dataclass(frozen=True)
class StackSummary:
    name: str
    status: str
    creation_time: datetime.datetime

    @staticmethod
    def from_response(summary: Mapping) -> "StackSummary":
        return StackSummary(
            name=summary["StackName"],
            status=summary.get("StackStatus"),
            creation_time=summary["CreationTime"],
        )
