"""
Format filters and the registry that looks them up by name.

A format filter is a process that generates a derivative bitstream--extracted text, a thumbnail
image, a branded preview--from a source bitstream.  For the purposes of synchronizing policies,
what matters about a filter is how it names its derivative (:py:meth:`FormatFilter.get_filtered_name`)
and which bundle it puts it in (:py:attr:`FormatFilter.bundle_name`).  A filter's *kind* is the
name of its class; the kind is what is matched against the configured list of public filters.

Filters are registered under a plugin name via the ``filters`` configuration parameter:

.. code-block:: yaml

   filters:
     "Text Extractor":
       class: TextExtractionFilter
     "Fancy Thumbnails":
       class: mysite.filters.FancyThumbnailFilter

where ``class`` is either the name of one of the built-in filter classes or the fully qualified
name of a :py:class:`FormatFilter` subclass.  Each built-in filter is also registered under its
class name.
"""
import importlib, inspect, logging
from collections import OrderedDict
from collections.abc import Mapping
from typing import List

from dspace.base.config import ConfigurationException

class FormatFilter(object):
    """
    a base class for filters that create derivative bitstreams
    """
    bundle_name = None
    description = ""

    def __init__(self, config: Mapping=None):
        if config is None:
            config = {}
        self.cfg = config

    @property
    def kind(self) -> str:
        """
        the kind of filter this is; this is its class name
        """
        return self.__class__.__name__

    def get_filtered_name(self, source_name: str) -> str:
        """
        return the name that the derivative of a bitstream with the given name will have
        """
        raise NotImplementedError()

    def __repr__(self):
        return "<%s: %s>" % (self.kind, self.bundle_name)


class TextExtractionFilter(FormatFilter):
    """
    a filter that extracts the text from documents for full-text indexing
    """
    bundle_name = "TEXT"
    description = "Extracted text"

    def get_filtered_name(self, source_name: str) -> str:
        return source_name + ".txt"


class ImageMagickThumbnailFilter(FormatFilter):
    """
    a filter that creates thumbnail images from images and documents
    """
    bundle_name = "THUMBNAIL"
    description = "Generated Thumbnail"

    def get_filtered_name(self, source_name: str) -> str:
        return source_name + ".jpg"


class JPEGFilter(ImageMagickThumbnailFilter):
    """
    a filter that creates thumbnail images from images
    """
    description = "Generated Thumbnail"


class BrandedPreviewJPEGFilter(FormatFilter):
    """
    a filter that creates branded preview images
    """
    bundle_name = "BRANDED_PREVIEW"
    description = "Generated Branded Preview"

    def get_filtered_name(self, source_name: str) -> str:
        return source_name + ".preview.jpg"


BUILTIN_FILTERS = OrderedDict((c.__name__, c) for c in (TextExtractionFilter, ImageMagickThumbnailFilter,
                                                        JPEGFilter, BrandedPreviewJPEGFilter))

def load_filter_class(classname: str):
    """
    return the FormatFilter class with the given name.  The name can either be the name of a
    built-in filter or a fully qualified class name.
    :raises ConfigurationException:  if the name does not resolve to a FormatFilter class
    """
    if classname in BUILTIN_FILTERS:
        return BUILTIN_FILTERS[classname]

    parts = classname.rsplit('.', 1)
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise ConfigurationException("Unrecognized filter class: " + classname)
    try:
        mod = importlib.import_module(parts[0])
    except ImportError as ex:
        raise ConfigurationException("Unable to import filter module %s: %s" % (parts[0], str(ex)), ex)

    cls = getattr(mod, parts[1], None)
    if not inspect.isclass(cls) or not issubclass(cls, FormatFilter):
        raise ConfigurationException("%s: does not resolve to a FormatFilter class" % classname)
    return cls


class FilterRegistry(object):
    """
    a lookup of format filters by their registered plugin names
    """

    def __init__(self, filters: Mapping=None, log: logging.Logger=None):
        """
        create the registry
        :param dict filters:  a mapping of plugin names to FormatFilter instances
        """
        self._filters = OrderedDict(filters or {})
        if not log:
            log = logging.getLogger("authz.mediafilter")
        self.log = log

    @classmethod
    def from_config(cls, config: Mapping, log: logging.Logger=None) -> "FilterRegistry":
        """
        create a registry from the ``filters`` configuration parameter.  Entries that cannot be
        loaded are logged and left out of the registry.
        """
        if not log:
            log = logging.getLogger("authz.mediafilter")
        filters = OrderedDict((name, fcls()) for name, fcls in BUILTIN_FILTERS.items())

        for name, fcfg in (config or {}).items():
            if isinstance(fcfg, str):
                fcfg = { "class": fcfg }
            try:
                fcls = load_filter_class(fcfg.get('class', name))
                filters[name] = fcls(fcfg)
            except ConfigurationException as ex:
                log.error("Unable to load filter plugin %s: %s", name, str(ex))
        return cls(filters, log)

    def register(self, name: str, fltr: FormatFilter):
        self._filters[name] = fltr

    def resolve(self, name: str) -> FormatFilter:
        """
        return the filter registered under the given name or None if there is no such filter
        """
        return self._filters.get(name)

    def resolve_all(self, names: List[str]) -> List[FormatFilter]:
        """
        return the filters registered under the given names, skipping those that are not registered
        """
        out = []
        for name in names:
            fltr = self.resolve(name)
            if fltr is None:
                self.log.warning("No filter plugin registered as %s", name)
            else:
                out.append(fltr)
        return out

    @property
    def names(self) -> List[str]:
        return list(self._filters.keys())
