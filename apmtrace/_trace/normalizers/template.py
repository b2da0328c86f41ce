import os
import site
import sysconfig

from apmtrace._trace.normalizers._base import Normalizer


def _site_packages():
    paths = {sysconfig.get_paths()[k] for k in ("purelib", "platlib")}
    try:
        paths.update(site.getsitepackages())
    except AttributeError:
        # Not available in some virtualenvs
        pass
    return tuple(sorted((os.path.normpath(p) for p in paths), key=len, reverse=True))


SITE_PACKAGES = _site_packages()


class RenderNormalizer(Normalizer):
    """Base of the template rendering normalizers.

    Span names are template paths relative to a configured view path, or to
    site-packages (prefixed with ``$SITE_PACKAGES``).
    """

    TYPE = "template"
    SUBTYPE = "view"
    ACTION = None

    def normalize(self, transaction, name, payload):
        return self.path_for(payload.get("identifier")), self.TYPE, self.SUBTYPE, self.ACTION, None

    def path_for(self, path):
        if not path:
            return "Unknown template"
        if not os.path.isabs(path):
            return path

        return self.view_path(path) or self.site_packages_path(path) or "Absolute path"

    def view_path(self, path):
        root = next((vp for vp in self._config.view_paths if path.startswith(vp)), None)
        if root is None:
            return None
        return self.strip_root(root, path)

    def site_packages_path(self, path):
        root = next((sp for sp in SITE_PACKAGES if path.startswith(sp)), None)
        if root is None:
            return None
        return "$SITE_PACKAGES/%s" % self.strip_root(root, path)

    @staticmethod
    def strip_root(root, path):
        return path[len(root.rstrip(os.sep)) + 1 :]


class RenderTemplateNormalizer(RenderNormalizer):
    event_names = ("render_template.template",)


class RenderPartialNormalizer(RenderNormalizer):
    event_names = ("render_partial.template",)
    ACTION = "partial"


class RenderCollectionNormalizer(RenderNormalizer):
    event_names = ("render_collection.template",)
    ACTION = "collection"
