"""
The lifecycle of a single CloudFormation stack: submitting its creation or deletion, waiting for the stack to
reach a terminal state, and exposing the stack outputs afterwards.
"""
import logging
import threading
import time
from typing import Callable, Dict, Optional

from stackwrapper import config
from stackwrapper.cloudformation.client import CloudFormationClient
from stackwrapper.cloudformation.exceptions import (
    ConfigurationError,
    ProviderRequestError,
    StackOutputsUnavailableError,
    StackTimeoutError,
)
from stackwrapper.cloudformation.models import StackSpec, StackState, StackStatus
from stackwrapper.cloudformation.resolver import StackNameResolver
from stackwrapper.constants import STACK_ID_OUTPUT_KEY
from stackwrapper.utils.sync import PollOutcome, poll_until, wait

LOG = logging.getLogger(__name__)


class StackLifecycleController:
    """
    Drives one stack through its creation or deletion. A controller exclusively owns the state of its stack, and
    is not meant to be shared between threads.
    """

    spec: StackSpec
    client: CloudFormationClient
    state: Optional[StackState]

    def __init__(
        self,
        spec: StackSpec,
        client: CloudFormationClient,
        cancel: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        :param spec: the stack to manage
        :param client: the client used for all requests to CloudFormation
        :param cancel: event that, once set, interrupts any wait for the stack
        :param clock: monotonic clock the timeout is measured with
        """
        self.spec = spec
        self.client = client
        self.cancel = cancel
        self.clock = clock
        self.state = None
        self._stack: Optional[Dict] = None

    @property
    def stack_name(self) -> str:
        return self.state.name if self.state else self.spec.name

    @property
    def auto_delete(self) -> bool:
        return self.spec.auto_delete

    @property
    def poll_interval(self) -> float:
        return 0 if self.spec.is_test_timeout else config.STACK_POLL_INTERVAL

    def create(self) -> bool:
        """
        Creates the stack and waits until its creation has finished.

        :return: True if the stack was created successfully, False otherwise
        :raises StackTimeoutError: if the stack is still being created after the timeout
        """
        if not self.spec.template_body or not self.spec.template_body.strip():
            raise ConfigurationError(f"No template given for stack {self.spec.name}")

        self.state = StackState(name=self.spec.name)
        self._stack = None
        LOG.info("Creating Cloud Formation stack: %s", self.stack_name)

        try:
            self.state.stack_id = self.client.create_stack(
                self.stack_name, self.spec.template_body, self.spec.parameters
            )
            self.state.started = self.clock()

            outcome = poll_until(
                self._is_creation_finished,
                interval=self.poll_interval,
                timeout=self.spec.effective_timeout,
                cancel=self.cancel,
                started=self.state.started,
                clock=self.clock,
            )
            if outcome is PollOutcome.CANCELLED:
                self._log_interruption()
                return False
            if outcome is PollOutcome.TIMED_OUT:
                raise StackTimeoutError(self.stack_name, self.spec.effective_timeout)

            self._log_stack_events()

            if self.state.status != StackStatus.CREATE_COMPLETE:
                LOG.error(
                    "Failed to create stack: %s. Reason: %s",
                    self.stack_name,
                    self.state.status_reason,
                )
                return False

            self.state.outputs = self._collect_outputs()
            LOG.info("Successfully created stack: %s", self.stack_name)
        except ProviderRequestError as e:
            LOG.error("Failed to create stack: %s. Reason: %s", self.stack_name, e.detailed_message())
            return False

        if self.spec.settle_delay and self.spec.settle_delay > 0:
            LOG.debug("Waiting %s seconds for stack %s to settle", self.spec.settle_delay, self.stack_name)
            wait(self.spec.settle_delay, self.cancel)

        return True

    def delete(self) -> bool:
        """
        Deletes the stack and waits until it is gone. A stack created by this controller is deleted by the name it
        was created with. Otherwise, if the stack is selected by prefix, the oldest running stack with the
        configured name as prefix is deleted.

        :return: True if the stack was deleted, False if the deletion failed or the wait was interrupted
        """
        try:
            if self.state is not None:
                name, stack_id = self.state.name, self.state.stack_id
            elif self.spec.prefix_selected:
                name, stack_id = StackNameResolver(self.client).resolve_oldest(self.spec.name), None
            else:
                name, stack_id = self.spec.name, None
            self.state = StackState(name=name, stack_id=stack_id)
            LOG.info("Deleting Cloud Formation stack: %s", self.stack_name)

            self.client.delete_stack(self.stack_name)
            self.state.started = self.clock()

            # no timeout unless explicitly configured, the stack is deleted eventually or fails doing so
            outcome = poll_until(
                self._is_deletion_finished,
                interval=self.poll_interval,
                timeout=config.STACK_DELETE_TIMEOUT,
                cancel=self.cancel,
                started=self.state.started,
                clock=self.clock,
            )
        except ProviderRequestError as e:
            LOG.error("Failed to delete stack: %s. Reason: %s", self.stack_name, e.detailed_message())
            return False

        if outcome is PollOutcome.CANCELLED:
            self._log_interruption()
            return False
        if outcome is PollOutcome.TIMED_OUT:
            LOG.warning(
                "Stopped waiting for the deletion of stack %s after %s seconds. Last known state: %s",
                self.stack_name,
                config.STACK_DELETE_TIMEOUT,
                self.state.describe(),
            )
            return False

        result = self.state.status != StackStatus.DELETE_FAILED
        if result:
            LOG.info("Cloud Formation stack: %s deleted successfully", self.stack_name)
        else:
            LOG.error(
                "Cloud Formation stack: %s failed deleting. Reason: %s",
                self.stack_name,
                self.state.status_reason,
            )
        return result

    def get_outputs(self) -> Dict[str, str]:
        """
        Returns the outputs of the created stack, each of them keyed as ``<stack name>_<output key>``, and
        additionally as ``<output prefix>_<output key>`` if an output prefix is configured.

        :raises StackOutputsUnavailableError: if the stack has not been created successfully
        """
        if not self.state or self.state.outputs is None:
            raise StackOutputsUnavailableError(self.stack_name)

        result = {}
        for key, value in self.state.outputs.items():
            result[f"{self.stack_name}_{key}"] = value
            if self.spec.output_prefix:
                result[f"{self.spec.output_prefix}_{key}"] = value
        return result

    def print_outputs(self) -> None:
        if not self.state or self.state.outputs is None:
            return
        LOG.info("**** %s outputs: ****", self.stack_name)
        for key, value in self.state.outputs.items():
            LOG.info("%s: %s", key, value)

    def _is_creation_finished(self) -> bool:
        stack = self.client.describe_stack(self.stack_name)
        if stack is None:
            self.state.status = None
            self.state.status_reason = f"Stack {self.stack_name} could not be found"
            return True
        self._stack = stack
        self.state.update(stack)
        return self.state.status != StackStatus.CREATE_IN_PROGRESS

    def _is_deletion_finished(self) -> bool:
        stack = self.client.describe_stack(self.stack_name)
        if stack is None:
            # deleted stacks are not returned by name any longer
            self.state.status = StackStatus.DELETE_COMPLETE.value
            self.state.status_reason = None
            return True
        self._stack = stack
        self.state.update(stack)
        return self.state.status in (StackStatus.DELETE_COMPLETE, StackStatus.DELETE_FAILED)

    def _collect_outputs(self) -> Dict[str, str]:
        outputs = {}
        for output in (self._stack or {}).get("Outputs") or []:
            outputs[output["OutputKey"]] = output.get("OutputValue")
        outputs[STACK_ID_OUTPUT_KEY] = self.state.stack_id
        return outputs

    def _log_stack_events(self) -> None:
        try:
            events = self.client.describe_stack_events(self.stack_name)
        except ProviderRequestError as e:
            LOG.warning("Unable to retrieve the events of stack %s: %s", self.stack_name, e)
            return
        for event in events:
            LOG.info(
                "%s - %s - %s - %s",
                event.get("EventId"),
                event.get("ResourceType"),
                event.get("ResourceStatus"),
                event.get("ResourceStatusReason"),
            )

    def _log_interruption(self) -> None:
        LOG.warning(
            "Received an interruption signal. There is a stack created or in the process of creation or "
            "deletion. Check in your AWS account to ensure you are not charged for this."
        )
        LOG.warning("Stack details: %s", self.state.describe())
