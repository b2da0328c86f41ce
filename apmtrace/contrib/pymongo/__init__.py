"""Report MongoDB commands as spans.

The integration registers a pymongo command listener; every command run
while a transaction is current becomes a ``db.mongodb.query`` span::

    from apmtrace.contrib.pymongo import patch
    patch(tracer)

    client = pymongo.MongoClient()
    client["test-db"].teams.find_one({"name": "Toronto Maple Leafs"})
"""
from apmtrace.contrib.pymongo.listener import CommandTracer
from apmtrace.contrib.pymongo.listener import patch


__all__ = ["CommandTracer", "patch"]
