from apmtrace.settings.config import Config


config = Config()

__all__ = ["Config", "config"]
