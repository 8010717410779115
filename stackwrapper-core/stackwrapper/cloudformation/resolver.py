import logging
from typing import List

from stackwrapper.cloudformation.client import CloudFormationClient
from stackwrapper.cloudformation.models import StackSummary
from stackwrapper.constants import RUNNING_STACK_STATUSES

LOG = logging.getLogger(__name__)


def select_oldest(prefix: str, summaries: List[StackSummary]) -> str:
    """
    Selects the oldest stack whose name starts with the given prefix. If there is no such stack, or only one, the
    prefix itself is returned. Among stacks created at the same time, the first one listed wins.
    """
    matching = [summary for summary in summaries if summary.name.startswith(prefix)]
    if len(matching) <= 1:
        return prefix

    oldest = matching[0]
    for summary in matching[1:]:
        if summary.creation_time < oldest.creation_time:
            oldest = summary
    return oldest.name


class StackNameResolver:
    """Resolves a stack name prefix to the name of the oldest running stack carrying that prefix."""

    def __init__(self, client: CloudFormationClient):
        self.client = client

    def list_running_stacks(self) -> List[StackSummary]:
        return self.client.list_stacks(RUNNING_STACK_STATUSES)

    def resolve_oldest(self, prefix: str) -> str:
        name = select_oldest(prefix, self.list_running_stacks())
        if name != prefix:
            LOG.debug("Resolved stack name prefix %s to the oldest matching stack %s", prefix, name)
        return name
