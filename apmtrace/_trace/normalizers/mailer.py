from apmtrace._trace.normalizers._base import Normalizer


class ProcessMailerNormalizer(Normalizer):
    event_names = ("process.mailer",)

    TYPE = "app"
    SUBTYPE = "mailer"
    ACTION = "action"

    def normalize(self, transaction, name, payload):
        return "%s#%s" % (payload.get("mailer"), payload.get("action")), self.TYPE, self.SUBTYPE, self.ACTION, None
