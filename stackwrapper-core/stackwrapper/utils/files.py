import datetime
import logging
import os
from typing import Mapping, Optional

LOG = logging.getLogger(__name__)

# characters that have to be escaped in keys and values of a properties file
PROPERTIES_SPECIAL_CHARS = {
    "\\": "\\\\",
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
    "\f": "\\f",
    "=": "\\=",
    ":": "\\:",
    "#": "\\#",
    "!": "\\!",
}


def save_file(file, content, append=False, permissions=None):
    mode = "a" if append else "w+"
    if not isinstance(content, str):
        mode = mode + "b"

    def _opener(path, flags):
        return os.open(path, flags, permissions)

    # make sure that the parent dir exists
    mkdir(os.path.dirname(file))
    # store file contents
    with open(file, mode, opener=_opener if permissions else None) as f:
        f.write(content)
        f.flush()


def load_file(file_path, default=None, mode=None):
    if not os.path.isfile(file_path):
        return default
    if not mode:
        mode = "r"
    with open(file_path, mode) as f:
        result = f.read()
    return result


def mkdir(folder: str):
    if folder and not os.path.exists(folder):
        os.makedirs(folder, exist_ok=True)


def escape_property(value: str, is_key: bool = False) -> str:
    """Escapes a key or value so it can be read back by a java.util.Properties compatible parser."""
    result = []
    for i, char in enumerate(value):
        if char == " " and (is_key or i == 0):
            result.append("\\ ")
        elif char in PROPERTIES_SPECIAL_CHARS:
            result.append(PROPERTIES_SPECIAL_CHARS[char])
        elif ord(char) < 0x20 or ord(char) > 0x7E:
            result.append("\\u%04x" % ord(char))
        else:
            result.append(char)
    return "".join(result)


def format_properties(properties: Mapping[str, str], comment: Optional[str] = None) -> str:
    """
    Renders the given mapping in the properties file format (``key=value`` per line), preceded by the optional
    comment and a timestamp comment line.
    """
    lines = []
    if comment:
        lines.append(f"#{comment}")
    lines.append(f"#{datetime.datetime.now().strftime('%a %b %d %H:%M:%S %Y')}")
    for key, value in properties.items():
        lines.append(f"{escape_property(str(key), is_key=True)}={escape_property(str(value))}")
    return "\n".join(lines) + "\n"


def write_properties(file_path: str, properties: Mapping[str, str], comment: str = None) -> str:
    """
    Writes the given mapping to a properties file, replacing any existing content.

    :param file_path: the path of the file to write
    :param properties: the key/value pairs to store
    :param comment: optional header comment
    :return: the path of the written file
    """
    save_file(file_path, format_properties(properties, comment))
    LOG.info("Outputs stored in %s", file_path)
    return file_path
