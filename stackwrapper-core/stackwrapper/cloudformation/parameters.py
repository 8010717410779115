"""
Conversion of stack parameters between the representations used in job definitions (a mapping, or a
``key=value`` string delimited by ``;`` or ``,``) and the parameter list of the CloudFormation API.
"""
from typing import Dict, List, Mapping, Optional

from stackwrapper.cloudformation.exceptions import ConfigurationError
from stackwrapper.utils.environment import BuildEnvironment


def to_provider_parameters(parameters: Optional[Mapping[str, str]]) -> List[Dict[str, str]]:
    """
    Converts a parameter mapping into the ``Parameters`` list of ``CreateStack``. An empty or missing mapping results
    in an empty list, which means "no parameters".
    """
    if not parameters:
        return []
    return [{"ParameterKey": key, "ParameterValue": value} for key, value in parameters.items()]


def from_provider_parameters(parameters: Optional[List[Mapping[str, str]]]) -> Dict[str, str]:
    """Converts the ``Parameters`` list of a ``DescribeStacks`` result back into an ordered mapping."""
    return {p["ParameterKey"]: p.get("ParameterValue") for p in parameters or []}


def parse_parameters(
    parameters: Optional[str], environment: Optional[BuildEnvironment] = None
) -> Dict[str, str]:
    """
    Parses a parameter string like ``Key1=Value1;Key2=Value2``. Pairs are separated by ``;`` if the string contains
    any ``;``, and by ``,`` otherwise. Each pair is split at its first ``=``, keys and values are trimmed, and values
    are expanded against the given environment.

    :param parameters: the parameter string
    :param environment: the environment to expand values against
    :return: the parameters, in the order they appear in the string
    :raises ConfigurationError: if a pair has no ``=`` or an empty key
    """
    result = {}
    if not parameters or not parameters.strip():
        return result

    delimiter = ";" if ";" in parameters else ","
    for pair in parameters.split(delimiter):
        if not pair.strip():
            continue
        if "=" not in pair:
            raise ConfigurationError(f"Invalid stack parameter '{pair.strip()}', expected key=value")
        key, value = pair.split("=", 1)
        key = key.strip()
        if not key:
            raise ConfigurationError(f"Invalid stack parameter '{pair.strip()}', the key is empty")
        value = value.strip()
        result[key] = environment.expand(value) if environment is not None else value

    return result


def format_parameters(parameters: Mapping[str, str], delimiter: str = ";") -> str:
    """
    The inverse of ``parse_parameters``: renders the mapping as a delimited ``key=value`` string.

    :raises ValueError: if a key or value cannot be represented in a string that parses back to the same mapping
    """
    if delimiter not in (";", ","):
        raise ValueError(f"Unsupported parameter delimiter {delimiter!r}")

    # any ";" switches parse_parameters to splitting on ";"
    reserved = {";", delimiter}
    for key, value in parameters.items():
        key, value = str(key), str(value)
        if not key or key != key.strip() or "=" in key:
            raise ValueError(f"Parameter key {key!r} cannot be formatted")
        if value != value.strip() or any(c in key or c in value for c in reserved):
            raise ValueError(
                f"Parameter {key}={value} cannot be formatted with delimiter {delimiter!r}"
            )
    result = delimiter.join(f"{key}={value}" for key, value in parameters.items())
    if delimiter == ";" and len(parameters) == 1 and "," in result:
        # without any ";" the string would be split on ","
        result += ";"
    return result
