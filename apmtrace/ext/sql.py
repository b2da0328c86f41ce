"""
Reduce SQL statements to low cardinality labels usable as span names::

    >>> summarize('SELECT * FROM "users" WHERE id = 1')
    'SELECT FROM users'
"""
import re
from typing import Optional
from typing import Union

from apmtrace.internal.utils.cache import cached


DEFAULT = "SQL"
MAX_LENGTH = 1000
CACHE_SIZE = 512

TABLE_REGEX = r"""["'`]?([A-Za-z0-9_]+)["'`]?"""

# First match wins, the order matters
RULES = (
    (re.compile(r"^BEGIN", re.IGNORECASE), "BEGIN"),
    (re.compile(r"^COMMIT", re.IGNORECASE), "COMMIT"),
    (re.compile(r"^SELECT .* FROM " + TABLE_REGEX, re.IGNORECASE), "SELECT FROM "),
    (re.compile(r"^INSERT INTO " + TABLE_REGEX, re.IGNORECASE), "INSERT INTO "),
    (re.compile(r"^UPDATE " + TABLE_REGEX, re.IGNORECASE), "UPDATE "),
    (re.compile(r"^DELETE FROM " + TABLE_REGEX, re.IGNORECASE), "DELETE FROM "),
)

_QUOTES = re.compile(r"""["']""")


def _to_text(sql):
    # type: (Union[str, bytes]) -> str
    """Truncate to ``MAX_LENGTH`` characters, replacing invalid UTF-8 sequences."""
    if isinstance(sql, bytes):
        return sql.decode("utf-8", errors="replace")[:MAX_LENGTH]
    return sql[:MAX_LENGTH].encode("utf-8", errors="replace").decode("utf-8")


def _match(sql):
    # type: (str) -> Optional[str]
    for regex, signature in RULES:
        match = regex.match(sql)
        if match is None:
            continue
        table = match.group(1) if regex.groups else None
        return signature + (_QUOTES.sub("", table) if table else "")
    return None


@cached(maxsize=CACHE_SIZE)
def summarize(sql):
    # type: (Union[str, bytes]) -> str
    """Return the summary label of ``sql``, ``"SQL"`` when the statement is not recognized."""
    return _match(_to_text(sql)) or DEFAULT
