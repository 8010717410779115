import functools
import logging
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from stackwrapper.aws.connect import ClientFactory, connect_to
from stackwrapper.cloudformation.exceptions import ProviderRequestError
from stackwrapper.cloudformation.models import Credentials, StackSummary
from stackwrapper.cloudformation.parameters import (
    from_provider_parameters,
    to_provider_parameters,
)
from stackwrapper.constants import STACK_CAPABILITIES

if TYPE_CHECKING:
    from mypy_boto3_cloudformation import CloudFormationClient as BotoCloudFormationClient

    from stackwrapper.aws.regions import Region

LOG = logging.getLogger(__name__)

T = TypeVar("T")


def _provider_request(operation: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Translates botocore errors raised by the decorated method into a ``ProviderRequestError``."""

    def _decorator(fn):
        @functools.wraps(fn)
        def _wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except ClientError as e:
                raise ProviderRequestError.from_client_error(operation, e) from e
            except BotoCoreError as e:
                raise ProviderRequestError.from_botocore_error(operation, e) from e

        return _wrapper

    return _decorator


def _is_stack_not_found(error: ClientError) -> bool:
    details = error.response.get("Error", {})
    return details.get("Code") == "ValidationError" and "does not exist" in (
        details.get("Message") or ""
    )


class CloudFormationClient:
    """
    The operations of the CloudFormation API that are needed to create, watch and delete stacks. Every call goes to
    the API, nothing is cached between calls.
    """

    def __init__(self, client: "BotoCloudFormationClient"):
        self._client = client

    @staticmethod
    def create(
        region: "Region",
        credentials: Optional[Credentials] = None,
        endpoint_url: Optional[str] = None,
        factory: ClientFactory = None,
    ) -> "CloudFormationClient":
        credentials = credentials or Credentials()
        factory = factory or connect_to
        client = factory.get_client(
            "cloudformation",
            region_name=region.short_name,
            aws_access_key_id=credentials.access_key,
            aws_secret_access_key=credentials.secret_key,
            aws_session_token=credentials.session_token,
            endpoint_url=endpoint_url,
        )
        return CloudFormationClient(client)

    @_provider_request("CreateStack")
    def create_stack(
        self, stack_name: str, template_body: str, parameters: Optional[Mapping[str, str]] = None
    ) -> str:
        """Submits the creation of a stack and returns the id of the new stack."""
        kwargs = dict(
            StackName=stack_name,
            TemplateBody=template_body,
            Capabilities=STACK_CAPABILITIES,
        )
        provider_parameters = to_provider_parameters(parameters)
        if provider_parameters:
            kwargs["Parameters"] = provider_parameters
        LOG.debug(
            "Submitting creation of stack %s with %d parameter(s)",
            stack_name,
            len(provider_parameters),
        )
        return self._client.create_stack(**kwargs)["StackId"]

    @_provider_request("DeleteStack")
    def delete_stack(self, stack_name: str) -> None:
        LOG.debug("Submitting deletion of stack %s", stack_name)
        self._client.delete_stack(StackName=stack_name)

    @_provider_request("DescribeStacks")
    def describe_stacks(self, stack_name: Optional[str] = None) -> List[Dict]:
        """
        Describes the stack with the given name, or all stacks if no name is given. A stack that does not exist (any
        longer) yields an empty list rather than an error.
        """
        kwargs = {"StackName": stack_name} if stack_name else {}
        paginator = self._client.get_paginator("describe_stacks")
        try:
            return [
                stack for page in paginator.paginate(**kwargs) for stack in page.get("Stacks", [])
            ]
        except ClientError as e:
            if stack_name and _is_stack_not_found(e):
                return []
            raise

    def describe_stack(self, stack_name: str) -> Optional[Dict]:
        """Returns the stack with exactly the given name, or None if there is none."""
        for stack in self.describe_stacks(stack_name):
            if stack.get("StackName") == stack_name:
                return stack
        return None

    def get_stack_parameters(self, stack_name: str) -> Dict[str, str]:
        """Returns the parameters the given stack was created with, or an empty mapping if it does not exist."""
        stack = self.describe_stack(stack_name)
        return from_provider_parameters(stack.get("Parameters")) if stack else {}

    @_provider_request("DescribeStackEvents")
    def describe_stack_events(self, stack_name: str) -> List[Dict]:
        """Returns the events of the given stack in chronological order (the API returns the newest first)."""
        paginator = self._client.get_paginator("describe_stack_events")
        events = [
            event
            for page in paginator.paginate(StackName=stack_name)
            for event in page.get("StackEvents", [])
        ]
        events.reverse()
        return events

    @_provider_request("ListStacks")
    def list_stacks(self, statuses: Optional[List[str]] = None) -> List[StackSummary]:
        kwargs = {"StackStatusFilter": statuses} if statuses else {}
        paginator = self._client.get_paginator("list_stacks")
        return [
            StackSummary.from_response(summary)
            for page in paginator.paginate(**kwargs)
            for summary in page.get("StackSummaries", [])
        ]
