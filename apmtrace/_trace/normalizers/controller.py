from apmtrace._trace.normalizers._base import Normalizer


class ProcessActionNormalizer(Normalizer):
    """Controller action handling a request; also names the transaction."""

    event_names = ("process_action.controller",)

    TYPE = "app"
    SUBTYPE = "controller"
    ACTION = "action"

    def normalize(self, transaction, name, payload):
        transaction.name = self.endpoint(payload)
        return transaction.name, self.TYPE, self.SUBTYPE, self.ACTION, None

    @staticmethod
    def endpoint(payload):
        return "%s#%s" % (payload.get("controller"), payload.get("action"))
