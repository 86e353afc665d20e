"""
Support for derivative bitstreams:  the format filters that make them and the synchronization of
their policies with those of the bitstreams they are derived from.

The easiest way to set up the services is with :py:func:`create_media_filter_service`:

.. code-block::

   mfsvc = create_media_filter_service(config, authz)
   mfsvc.update_policies_of_derivative_bitstreams(context, item, bitstream)
"""
import logging
from collections.abc import Mapping

from ..policy import AuthorizeService
from .filters import (FormatFilter, FilterRegistry, TextExtractionFilter, ImageMagickThumbnailFilter,
                      JPEGFilter, BrandedPreviewJPEGFilter)
from .updater import PolicyUpdater, PolicyUpdaterService, MediaFilterRelatedPolicyUpdater
from .service import MediaFilterService

def create_media_filter_service(config: Mapping, authz: AuthorizeService,
                                log: logging.Logger=None) -> MediaFilterService:
    """
    create a MediaFilterService wired with a MediaFilterRelatedPolicyUpdater configured from the given
    configuration (which may include the ``filters``, ``filter_plugins``, and ``public_filters``
    parameters).
    """
    if not log:
        log = logging.getLogger("authz.mediafilter")
    registry = FilterRegistry.from_config(config.get('filters', {}), log)
    updater = MediaFilterRelatedPolicyUpdater(PolicyUpdaterService(authz, log.getChild("updater")),
                                              registry, config, log.getChild("updater"))
    return MediaFilterService(updater, log)
