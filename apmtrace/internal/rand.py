import random


_rand = random.SystemRandom()


def rand64bits():
    # type: () -> int
    return _rand.getrandbits(64)


def span_id():
    # type: () -> str
    """16 hex characters identifier for spans, transactions and errors."""
    return "{:016x}".format(rand64bits())


def trace_id():
    # type: () -> str
    """32 hex characters trace identifier."""
    return "{:032x}".format(_rand.getrandbits(128))
