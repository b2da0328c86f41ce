"""
Normalizers turn instrumentation events into span descriptors.

Collaborators add their own with :meth:`Normalizers.register`::

    class QueryNormalizer(Normalizer):
        def normalize(self, transaction, name, payload):
            return summarize(payload["sql"]), "db", "postgresql", "sql", Context(db={"statement": payload["sql"]})

    tracer.normalizers.register("sql.query", QueryNormalizer(config))
"""
from apmtrace._trace.normalizers._base import Normalizer
from apmtrace._trace.normalizers._base import Normalizers
from apmtrace._trace.normalizers import controller  # noqa:F401,I100
from apmtrace._trace.normalizers import mailer  # noqa:F401
from apmtrace._trace.normalizers import template  # noqa:F401


__all__ = ["Normalizer", "Normalizers"]
