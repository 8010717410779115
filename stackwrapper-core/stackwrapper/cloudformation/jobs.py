"""
Job files: YAML documents listing the stacks a build creates or deletes. Entries are kept as written, and only
resolved against the build environment right before the stack is processed, so that later entries can refer to
the outputs of stacks created earlier in the same job.
"""
import dataclasses
import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from stackwrapper.aws.regions import Region
from stackwrapper.cloudformation.exceptions import ConfigurationError
from stackwrapper.cloudformation.models import Credentials, StackMode, StackSpec
from stackwrapper.cloudformation.parameters import parse_parameters
from stackwrapper.utils.environment import BuildEnvironment
from stackwrapper.utils.files import load_file

LOG = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class StackDefinition:
    """A stack entry of a job file, with all values unexpanded."""

    name: str
    mode: StackMode = StackMode.CREATE
    template: Optional[str] = None
    parameters: Union[str, Mapping[str, Any], None] = None
    output_prefix: Optional[str] = None
    timeout: int = 0
    region: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    settle_delay: float = 0
    prefix_selected: bool = False

    def resolve_parameters(self, environment: BuildEnvironment) -> Dict[str, str]:
        if isinstance(self.parameters, Mapping):
            return {
                str(key).strip(): environment.expand("" if value is None else str(value).strip())
                for key, value in self.parameters.items()
            }
        return parse_parameters(self.parameters, environment)

    def load_template(self, workspace: str) -> str:
        if not self.template:
            if self.mode.creates:
                raise ConfigurationError(f"Empty template file for stack {self.name}")
            return ""
        path = self.template
        if not os.path.isabs(path):
            path = os.path.join(workspace, path)
        body = load_file(path)
        if body is None:
            raise ConfigurationError(f"Template file {path} of stack {self.name} does not exist")
        return body

    def resolve(self, environment: BuildEnvironment, workspace: str = ".") -> StackSpec:
        """
        Expands this definition against the given environment and loads its template from the workspace.

        :raises ConfigurationError: if the definition cannot be turned into a valid ``StackSpec``
        """
        name = environment.expand(self.name)
        if not name or not name.strip():
            raise ConfigurationError("Empty stack name")

        return StackSpec(
            name=name.strip(),
            template_body=self.load_template(workspace),
            parameters=self.resolve_parameters(environment),
            output_prefix=environment.expand(self.output_prefix) or None,
            timeout=self.timeout,
            credentials=Credentials(
                access_key=environment.expand(self.access_key) or None,
                secret_key=environment.expand(self.secret_key) or None,
            ),
            region=Region.from_short_name(environment.expand(self.region)),
            mode=self.mode,
            settle_delay=self.settle_delay,
            prefix_selected=self.prefix_selected,
        )


def _parse_mode(value: Any, index: int) -> StackMode:
    if value is None:
        return StackMode.CREATE
    try:
        return StackMode(str(value).strip().lower())
    except ValueError:
        modes = ", ".join(mode.value for mode in StackMode)
        raise ConfigurationError(
            f"Stack #{index}: unknown mode '{value}', expected one of {modes}"
        ) from None


def _parse_number(entry: Dict, key: str, index: int, cast=int) -> Any:
    value = entry.get(key)
    if value is None or value == "":
        return cast(0)
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Stack #{index}: {key} value {value} is not a number.") from None


def parse_stack_definition(entry: Any, index: int) -> StackDefinition:
    if not isinstance(entry, dict):
        raise ConfigurationError(f"Stack #{index}: expected a mapping, got {type(entry).__name__}")

    unknown = set(entry) - {field.name for field in dataclasses.fields(StackDefinition)}
    if unknown:
        raise ConfigurationError(f"Stack #{index}: unknown keys {', '.join(sorted(unknown))}")

    name = entry.get("name")
    if not name or not str(name).strip():
        raise ConfigurationError(f"Stack #{index}: empty stack name")

    mode = _parse_mode(entry.get("mode"), index)
    if mode.creates and not entry.get("template"):
        raise ConfigurationError(f"Stack #{index} ({name}): empty template file")

    prefix_selected = bool(entry.get("prefix_selected", False))
    if prefix_selected and mode is not StackMode.DELETE_ONLY:
        raise ConfigurationError(
            f"Stack #{index} ({name}): prefix_selected is only supported for delete_only stacks"
        )

    parameters = entry.get("parameters")
    if parameters is not None and not isinstance(parameters, (str, dict)):
        raise ConfigurationError(
            f"Stack #{index} ({name}): parameters must be a string or a mapping"
        )

    return StackDefinition(
        name=str(name),
        mode=mode,
        template=entry.get("template"),
        parameters=parameters,
        output_prefix=entry.get("output_prefix"),
        timeout=_parse_number(entry, "timeout", index),
        region=entry.get("region"),
        access_key=entry.get("access_key"),
        secret_key=entry.get("secret_key"),
        settle_delay=_parse_number(entry, "settle_delay", index, cast=float),
        prefix_selected=prefix_selected,
    )


def parse_job(document: Any) -> List[StackDefinition]:
    if not isinstance(document, dict) or not isinstance(document.get("stacks"), list):
        raise ConfigurationError("A job must contain a list of stacks under the 'stacks' key")
    return [parse_stack_definition(entry, i + 1) for i, entry in enumerate(document["stacks"])]


def load_job_file(path: str) -> List[StackDefinition]:
    """
    Loads the stack definitions of the given job file.

    :raises ConfigurationError: if the file does not exist or is not a valid job
    """
    content = load_file(path)
    if content is None:
        raise ConfigurationError(f"Job file {path} does not exist")
    try:
        document = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Job file {path} is not valid YAML: {e}") from e
    definitions = parse_job(document)
    LOG.debug("Loaded %d stack definition(s) from %s", len(definitions), path)
    return definitions
