from typing import Any  # noqa:F401
from typing import Dict  # noqa:F401
from typing import List  # noqa:F401
from typing import Optional  # noqa:F401
from typing import Union  # noqa:F401


def asbool(value):
    # type: (Union[str, bool, None]) -> bool
    """Convert the given String to a boolean object.

    Accepted values are `True` and `1`.
    """
    if value is None:
        return False

    if isinstance(value, bool):
        return value

    return value.lower() in ("true", "1")


def parse_tags_str(tags_str: Optional[str]) -> Dict[str, str]:
    """
    Parses a string containing key-value pairs and returns a dictionary.
    Key-value pairs are delimited by ':', and pairs are separated by whitespace, comma, OR BOTH.

    :param tags_str: A string of the above form to parse tags from.
    :return: A dict containing the tags that were parsed.
    """
    res: Dict[str, str] = {}
    if not tags_str:
        return res
    # falling back to comma as separator
    sep = "," if "," in tags_str else " "

    for tag in tags_str.split(sep):
        tag = tag.strip()
        if not tag:
            continue
        elif ":" in tag:
            key, val = tag.split(":", 1)
        else:
            key, val = tag, ""
        key, val = key.strip(), val.strip()
        if key:
            res[key] = val
    return res


def parse_list_str(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def reverse_merge(target, defaults):
    # type: (Dict[Any, Any], Optional[Dict[Any, Any]]) -> Dict[Any, Any]
    """Copy the entries of ``defaults`` missing from ``target`` into it.

    Keys already present in ``target`` win. ``target`` is updated in place and returned.
    """
    if not defaults:
        return target
    for key, value in defaults.items():
        target.setdefault(key, value)
    return target
