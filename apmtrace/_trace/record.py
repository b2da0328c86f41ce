from typing import Any

import attr

from apmtrace.constants import RECORD_KINDS


def _check_kind(instance, attribute, value):
    if value not in RECORD_KINDS:
        raise ValueError("Unknown record kind %r" % (value,))


@attr.s(frozen=True, slots=True)
class Record(object):
    """What the sink receives: a ``kind`` discriminator and the captured object."""

    kind = attr.ib(type=str, validator=_check_kind)
    body = attr.ib(type=Any)
