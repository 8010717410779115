import logging
import os
import time
from typing import Any, List, Optional, Tuple, Union

from stackwrapper.constants import (
    AWS_REGION_US_EAST_1,
    DEFAULT_OUTPUT_FILE,
    DEFAULT_POLL_INTERVAL,
    FALSE_STRINGS,
    LOG_LEVELS,
    TRACE_LOG_LEVELS,
    TRUE_STRINGS,
)

# keep track of start time, for performance debugging
load_start_time = time.time()


def eval_log_type(env_var_name: str) -> Union[str, bool]:
    """Get the log type from environment variable"""
    sw_log = os.environ.get(env_var_name, "").lower().strip()
    return sw_log if sw_log in LOG_LEVELS else False


def parse_boolean_env(env_var_name: str) -> Optional[bool]:
    """Parse the value of the given env variable and return True/False, or None if it is not a boolean value."""
    value = os.environ.get(env_var_name, "").lower().strip()
    if value in TRUE_STRINGS:
        return True
    if value in FALSE_STRINGS:
        return False
    return None


def is_env_true(env_var_name: str) -> bool:
    """Whether the given environment variable has a truthy value."""
    return os.environ.get(env_var_name, "").lower().strip() in TRUE_STRINGS


def is_env_not_false(env_var_name: str) -> bool:
    """Whether the given environment variable is empty or has a truthy value."""
    return os.environ.get(env_var_name, "").lower().strip() not in FALSE_STRINGS


def parse_number_env(env_var_name: str, default: float) -> float:
    """Parse the given env variable as a number, falling back to the default if it is unset or empty."""
    value = os.environ.get(env_var_name, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        LOG.warning("Ignoring non-numeric value %r for %s", value, env_var_name)
        return default


def load_environment(profiles: str = None, env=os.environ) -> List[str]:
    """Loads the environment variables from ~/.stackwrapper/{profile}.env, for each profile listed in the profiles.
    :param env: environment to load profile to. Defaults to `os.environ`
    :param profiles: a comma separated list of profiles to load (defaults to "default")
    :returns str: the list of the actually loaded profiles (might be the fallback)
    """
    if not profiles:
        profiles = "default"

    profiles = profiles.split(",")
    environment = {}
    import dotenv

    for profile in profiles:
        profile = profile.strip()
        path = os.path.join(CONFIG_DIR, f"{profile}.env")
        if not os.path.exists(path):
            continue
        environment.update(dotenv.dotenv_values(path))

    for k, v in environment.items():
        # we do not want to override the environment
        if k not in env and v is not None:
            env[k] = v

    return profiles


LOG = logging.getLogger(__name__)

# CLI specific: the configuration profile to load
CONFIG_PROFILE = os.environ.get("CONFIG_PROFILE", "").strip()

# CLI specific: host configuration directory
CONFIG_DIR = os.environ.get("CONFIG_DIR", os.path.expanduser("~/.stackwrapper"))

# keep this on top to populate environment
LOADED_PROFILES = load_environment(CONFIG_PROFILE)

# whether to enable verbose debug logging
SW_LOG = eval_log_type("SW_LOG")
DEBUG = is_env_true("DEBUG") or SW_LOG in TRACE_LOG_LEVELS

# seconds to wait between two status checks of a stack that is being created or deleted
STACK_POLL_INTERVAL = parse_number_env("STACK_POLL_INTERVAL", DEFAULT_POLL_INTERVAL)

# upper bound (in seconds) for waiting on a stack deletion, 0 waits until the stack is gone
STACK_DELETE_TIMEOUT = parse_number_env("STACK_DELETE_TIMEOUT", 0)

# name of the properties file (relative to the workspace) the stack outputs are written to
STACK_OUTPUT_FILE = os.environ.get("STACK_OUTPUT_FILE", "").strip() or DEFAULT_OUTPUT_FILE

# endpoint override for the CloudFormation API, e.g., to run against a local emulator
AWS_ENDPOINT_URL = os.environ.get("AWS_ENDPOINT_URL", "").strip() or None

# region used when a stack definition does not name one
DEFAULT_REGION = os.environ.get("DEFAULT_REGION", "").strip() or AWS_REGION_US_EAST_1

CONFIG_ENV_VARS = [
    "AWS_ENDPOINT_URL",
    "CONFIG_DIR",
    "CONFIG_PROFILE",
    "DEBUG",
    "DEFAULT_REGION",
    "STACK_DELETE_TIMEOUT",
    "STACK_OUTPUT_FILE",
    "STACK_POLL_INTERVAL",
    "SW_LOG",
]


def is_trace_logging_enabled():
    if SW_LOG:
        log_level = str(SW_LOG).upper()
        return log_level.lower() in TRACE_LOG_LEVELS
    return False


def collect_config_items() -> List[Tuple[str, Any]]:
    """Returns a list of key-value tuples of stackwrapper configuration values."""
    none = object()  # sentinel object

    values = globals()

    result = []
    for k in sorted(CONFIG_ENV_VARS):
        v = values.get(k, none)
        if v is none:
            continue
        result.append((k, v))
    return result


# set log levels immediately, but will be overwritten later by setup_logging
if DEBUG:
    logging.getLogger("").setLevel(logging.DEBUG)
    logging.getLogger("stackwrapper").setLevel(logging.DEBUG)

if is_trace_logging_enabled():
    load_end_time = time.time()
    LOG.debug(
        "Initializing the configuration took %s ms", int((load_end_time - load_start_time) * 1000)
    )
