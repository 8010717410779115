import os
import sys
from typing import Optional

# important: this needs to be free of stackwrapper imports


def set_profile_from_sys_argv():
    """
    Reads the --profile flag from sys.argv and then sets the 'CONFIG_PROFILE' os variable accordingly. This is later
    picked up by ``stackwrapper.config``.
    """
    profile = parse_profile_argument(sys.argv)
    if profile:
        os.environ["CONFIG_PROFILE"] = profile.strip()


def parse_profile_argument(args) -> Optional[str]:
    """
    Lightweight arg parsing to find ``--profile <config>``, or ``--profile=<config>`` and return the value of
    ``<config>`` from the given arguments.

    :param args: list of CLI arguments
    :returns: the value of ``--profile``.
    """
    for i, current_arg in enumerate(args):
        if current_arg == "--":
            # everything after this belongs to the wrapped command
            return None
        if current_arg.startswith("--profile="):
            return current_arg[10:]
        if current_arg in ["--profile", "-p"]:
            try:
                return args[i + 1]
            except IndexError:
                return None

    return None
