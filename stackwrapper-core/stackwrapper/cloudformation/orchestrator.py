"""
Coordination of the stacks of a job: stacks are created one after another, a failure rolls back the stacks
created so far, and at the end of the job stacks marked for automatic deletion are torn down in reverse order.
"""
import dataclasses
import logging
import threading
import time
from typing import Callable, Dict, Iterable, List, Optional

from stackwrapper.cloudformation.client import CloudFormationClient
from stackwrapper.cloudformation.controller import StackLifecycleController
from stackwrapper.cloudformation.exceptions import ConfigurationError, StackTimeoutError
from stackwrapper.cloudformation.jobs import StackDefinition
from stackwrapper.cloudformation.models import StackMode, StackSpec
from stackwrapper.utils.environment import BuildEnvironment

LOG = logging.getLogger(__name__)

ClientProvider = Callable[[StackSpec], CloudFormationClient]


def default_client_provider(spec: StackSpec) -> CloudFormationClient:
    return CloudFormationClient.create(spec.region, spec.credentials)


@dataclasses.dataclass
class StackSession:
    """The stacks created by ``StackOrchestrator.begin``, to be passed to ``StackOrchestrator.end``."""

    controllers: List[StackLifecycleController] = dataclasses.field(default_factory=list)
    outputs: Dict[str, str] = dataclasses.field(default_factory=dict)
    success: bool = True
    failed_teardowns: List[str] = dataclasses.field(default_factory=list)
    # stacks whose creation timed out or was interrupted, they may still be in progress
    unfinished: List[str] = dataclasses.field(default_factory=list)

    @property
    def stack_names(self) -> List[str]:
        return [controller.stack_name for controller in self.controllers]

    @property
    def leftover_stacks(self) -> List[str]:
        """The stacks that may still exist after a failed job."""
        return self.unfinished + self.failed_teardowns


class StackOrchestrator:
    """Processes the stacks of a job strictly in order, on the calling thread."""

    environment: BuildEnvironment

    def __init__(
        self,
        environment: BuildEnvironment,
        workspace: str = ".",
        client_provider: ClientProvider = None,
        cancel: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        :param environment: the build environment; outputs of created stacks are merged into it
        :param workspace: the directory template paths are relative to
        :param client_provider: creates the CloudFormation client for a stack
        :param cancel: event that, once set, interrupts waiting for stacks and stops creating further stacks
        :param clock: monotonic clock passed on to the controllers
        """
        self.environment = environment
        self.workspace = workspace
        self.client_provider = client_provider or default_client_provider
        self.cancel = cancel
        self.clock = clock

    def new_controller(self, spec: StackSpec) -> StackLifecycleController:
        return StackLifecycleController(
            spec, self.client_provider(spec), cancel=self.cancel, clock=self.clock
        )

    @property
    def cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()

    def begin(self, definitions: Iterable[StackDefinition]) -> StackSession:
        """
        Creates the stacks of all create-mode definitions, in order. If a stack cannot be created, no further stacks
        are created and the ones created before are deleted again, in reverse order.

        :return: the session holding the created stacks and their merged outputs
        :raises ConfigurationError: if a definition is invalid, after the stacks created so far were rolled back
        """
        session = StackSession()

        for definition in definitions:
            if not definition.mode.creates:
                continue
            if self.cancelled:
                LOG.warning("Job was cancelled, not creating stack %s", definition.name)
                session.success = False
                break

            try:
                controller = self.new_controller(
                    definition.resolve(self.environment, self.workspace)
                )
                created = controller.create()
            except StackTimeoutError as e:
                session.unfinished.append(e.stack_name)
                LOG.error(
                    "ERROR creating stack with name %s. Operation timed out. Try increasing the timeout "
                    "period in your stack configuration.",
                    e.stack_name,
                )
                LOG.warning(
                    "Stack %s may still be in the process of creation, check your AWS account for resources "
                    "you may be charged for.",
                    e.stack_name,
                )
                created = False
            except ConfigurationError:
                session.success = False
                self.rollback(session)
                raise
            else:
                if not created and self.cancelled and controller.state.stack_id:
                    session.unfinished.append(controller.stack_name)

            if not created:
                session.success = False
                break

            controller.print_outputs()
            outputs = controller.get_outputs()
            session.controllers.append(controller)
            session.outputs.update(outputs)
            # later stacks may refer to the outputs of this one
            self.environment.override_all(outputs)

        if not session.success:
            self.rollback(session)

        return session

    def rollback(self, session: StackSession) -> bool:
        """Deletes all stacks of the session in reverse creation order, regardless of their mode."""
        if not session.controllers:
            return True
        LOG.warning(
            "Rolling back %d stack(s) created so far: %s",
            len(session.controllers),
            ", ".join(reversed(session.stack_names)),
        )
        failed = self._teardown(session.controllers)
        session.failed_teardowns.extend(failed)
        session.controllers = []
        return not failed

    def end(self, session: StackSession) -> bool:
        """
        Deletes the stacks of the session that are marked for automatic deletion, in reverse creation order. A
        failing deletion does not prevent the deletion of the remaining stacks.

        :return: True if all stacks were deleted
        """
        to_delete = [controller for controller in session.controllers if controller.auto_delete]
        failed = self._teardown(to_delete)
        session.failed_teardowns.extend(failed)
        session.controllers = [c for c in session.controllers if c not in to_delete]
        if failed:
            LOG.error("Failed to delete stack(s): %s", ", ".join(failed))
        return not failed

    def delete_stacks(self, definitions: Iterable[StackDefinition]) -> bool:
        """
        Deletes the stacks of all delete-only definitions, in order. Every stack is attempted even if the deletion of
        a previous one failed.

        :return: True if all stacks were deleted
        """
        result = True
        for definition in definitions:
            if definition.mode is not StackMode.DELETE_ONLY:
                continue
            try:
                controller = self.new_controller(
                    definition.resolve(self.environment, self.workspace)
                )
            except ConfigurationError as e:
                LOG.error("Invalid configuration of stack %s: %s", definition.name, e)
                result = False
                continue
            if controller.delete():
                LOG.debug("Deleted stack %s", controller.stack_name)
            else:
                LOG.warning("Failed to delete stack %s", controller.stack_name)
                result = False
        return result

    def run(self, definitions: List[StackDefinition]) -> StackSession:
        """Creates the create-mode stacks and, if that succeeded, deletes the delete-only stacks of the job."""
        session = self.begin(definitions)
        if session.success:
            session.success = self.delete_stacks(definitions)
        return session

    def _teardown(self, controllers: List[StackLifecycleController]) -> List[str]:
        failed = []
        for controller in reversed(controllers):
            try:
                deleted = controller.delete()
            except Exception:
                LOG.exception("Unexpected error while deleting stack %s", controller.stack_name)
                deleted = False
            if not deleted:
                failed.append(controller.stack_name)
        return failed
