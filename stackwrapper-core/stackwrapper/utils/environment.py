import os
import re
from typing import Dict, Mapping, Optional

# matches ${VAR} and $VAR references
VARIABLE_REFERENCE_REGEX = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_.]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


class BuildEnvironment(Dict[str, str]):
    """
    The variables of a build: a mutable string-to-string mapping that stack names, parameters and credentials are
    expanded against, and that the outputs of created stacks are merged into.
    """

    @staticmethod
    def from_os_environ(overrides: Optional[Mapping[str, str]] = None) -> "BuildEnvironment":
        env = BuildEnvironment(os.environ)
        if overrides:
            env.override_all(overrides)
        return env

    def expand(self, template: Optional[str]) -> Optional[str]:
        """
        Substitutes ``${VAR}`` and ``$VAR`` references with the values of this environment. References to unknown
        variables are left untouched.

        :param template: the string to expand
        :return: the expanded string, or None if the template is None
        """
        if not template:
            return template

        def _replace(match: re.Match) -> str:
            name = match.group(1) or match.group(2)
            value = self.get(name)
            return match.group(0) if value is None else value

        return VARIABLE_REFERENCE_REGEX.sub(_replace, template)

    def override_all(self, variables: Mapping[str, str]) -> None:
        """Merges the given variables into this environment, overwriting existing entries."""
        for key, value in variables.items():
            self[key] = "" if value is None else str(value)

    def copy(self) -> "BuildEnvironment":
        return BuildEnvironment(self)
