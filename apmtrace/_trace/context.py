from typing import Any
from typing import Dict
from typing import Optional

import attr


@attr.s(eq=False)
class Context(object):
    """Structured data attached to a transaction, a span or an error.

    ``labels`` and ``custom`` are free form maps; the other members hold
    protocol specific data, e.g. ``db={"instance": ..., "statement": ..., "type": ..., "user": ...}``.
    """

    labels = attr.ib(factory=dict, type=Dict[str, Any])
    custom = attr.ib(factory=dict, type=Dict[str, Any])
    user = attr.ib(default=None, type=Optional[Dict[str, Any]])
    db = attr.ib(default=None, type=Optional[Dict[str, Any]])
    http = attr.ib(default=None, type=Optional[Dict[str, Any]])
    message = attr.ib(default=None, type=Optional[Dict[str, Any]])

    def to_dict(self):
        # type: () -> Dict[str, Any]
        return {k: v for k, v in attr.asdict(self, recurse=False).items() if v}
