"""
Synchronization of the policies of derivative bitstreams with those of their sources.

When a format filter generates a derivative of a bitstream (see :py:mod:`~dspace.authz.mediafilter.filters`),
the derivative should generally be exactly as accessible as its source.  The exception is
derivatives made by filters configured as *public* (typically thumbnail generators); these are
made readable by everyone regardless of the source's restrictions.

:py:class:`PolicyUpdaterService` carries out the synchronization for a single derivative;
:py:class:`MediaFilterRelatedPolicyUpdater` finds all of the derivatives of a source bitstream
within an item and synchronizes each of them.
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import List

from .. import constants as const
from ..content import Item, Bundle, Bitstream, DSpaceObject
from ..context import Context
from ..policy import AuthorizeService, ResourcePolicy
from ..utils.logging import blab
from .filters import FormatFilter, FilterRegistry

FILTER_PLUGINS_PARAM = "filter_plugins"
PUBLIC_FILTERS_PARAM = "public_filters"

class PolicyUpdaterService(object):
    """
    a service for resetting the policies of a derivative bitstream from those of its source
    """

    def __init__(self, authz: AuthorizeService, log: logging.Logger=None):
        self.authz = authz
        if not log:
            log = logging.getLogger("authz.mediafilter.updater")
        self.log = log

    def has_policy(self, context: Context, dso: DSpaceObject, policy: ResourcePolicy) -> bool:
        """
        return True if the given object has a policy equivalent to the given one; that is, one with
        the same group, eperson, action, start date and end date.
        """
        return self.authz.has_equivalent_policy(context, dso, policy)

    def update_derivative(self, context: Context, derivative: Bitstream, format_filter: FormatFilter,
                          source: Bitstream, public_filters: List[str]):
        """
        reset the policies of a derivative bitstream.  All of the derivative's existing policies are
        removed.  If the filter that created it is one of the public filters, the derivative (and
        each bundle it is in) is made readable by the anonymous group; otherwise, the derivative
        gets copies of all of the source's policies, and the bundles containing the derivative get
        the policies of the source's content bundle.

        :param Context context:         the current context
        :param Bitstream derivative:    the derivative bitstream to update
        :param FormatFilter format_filter:  the filter that created the derivative; may be None
        :param Bitstream source:        the bitstream that the derivative was created from
        :param list public_filters:     the kinds of filters whose derivatives should be public
        """
        self.authz.remove_all_policies(context, derivative)

        if format_filter is not None and format_filter.kind in (public_filters or []):
            blab(self.log, "Making derivative %s of %s public", derivative.id, source.id)
            anonymous = self.authz.get_anonymous_group(context)
            self.authz.add_policy(context, derivative, const.READ, anonymous)
            for bundle in derivative.bundles:
                if not self.authz.find_by_type_group_action(context, bundle, anonymous, const.READ):
                    self.authz.add_policy(context, bundle, const.READ, anonymous)

        else:
            self.authz.replace_all_policies(context, source, derivative)
            bundles = source.bundles
            self.clone_policies_from_original_bundle(context, derivative, bundles[0] if bundles else None,
                                                     self.authz.get_policies(context, source))

    def clone_policies_from_original_bundle(self, context: Context, derivative: Bitstream,
                                            original: Bundle, added_policies: List[ResourcePolicy]):
        """
        replace the policies of the bundles containing the derivative with those of the original
        bundle.  Nothing is done unless the original bundle is the content bundle ("ORIGINAL")
        and the source had policies to copy.
        """
        if original is None or not added_policies:
            return
        if original.name != const.CONTENT_BUNDLE_NAME:
            return

        origpols = self.authz.get_policies(context, original)
        for bundle in derivative.bundles:
            self.authz.remove_all_policies(context, bundle)
            self.add_to_bundle_policies(context, bundle, origpols)

    def add_to_bundle_policies(self, context: Context, bundle: Bundle, policies: List[ResourcePolicy]):
        """
        add copies of the given policies to the bundle, skipping any equivalent to one already there
        """
        for policy in policies:
            if not self.has_policy(context, bundle, policy):
                self.authz.add_policies(context, [policy], bundle)


class PolicyUpdater(ABC):
    """
    an interface for updating the policies of the derivatives of a bitstream
    """

    def __init__(self, service: PolicyUpdaterService, config: Mapping=None, log: logging.Logger=None):
        self.service = service
        if config is None:
            config = {}
        self.cfg = config
        if not log:
            log = logging.getLogger("authz.mediafilter.updater")
        self.log = log

    @property
    def public_filters(self) -> List[str]:
        """
        the kinds of filters whose derivatives should be publicly readable
        """
        return [f.strip() for f in (self.cfg.get(PUBLIC_FILTERS_PARAM) or []) if f and f.strip()]

    def update_derivative(self, context: Context, derivative: Bitstream, source: Bitstream,
                          format_filter: FormatFilter=None):
        """
        update the policies of a single derivative bitstream from its source
        """
        self.service.update_derivative(context, derivative, format_filter, source, self.public_filters)

    @abstractmethod
    def update_policies(self, context: Context, item: Item, source: Bitstream):
        """
        update the policies of the derivatives of the given source bitstream
        :param Context context:   the current context
        :param Item item:         the item the source bitstream is part of
        :param Bitstream source:  the bitstream whose derivatives should be updated
        """
        raise NotImplementedError()


class MediaFilterRelatedPolicyUpdater(PolicyUpdater):
    """
    a PolicyUpdater that finds derivatives of a bitstream by the names the configured format
    filters give them.

    This updater supports the following configuration parameters:

    ``filter_plugins``
        (list of str) the names of the filter plugins to look for derivatives from
    ``public_filters``
        (list of str) the kinds (class names) of filters whose derivatives should be public
    """

    def __init__(self, service: PolicyUpdaterService, registry: FilterRegistry, config: Mapping=None,
                 log: logging.Logger=None):
        super(MediaFilterRelatedPolicyUpdater, self).__init__(service, config, log)
        self.registry = registry

    def load_filters(self, names: List[str]) -> List[FormatFilter]:
        """
        return the filters registered under the given plugin names, skipping unknown ones
        """
        return self.registry.resolve_all(names)

    def update_policies(self, context: Context, item: Item, source: Bitstream):
        if item is None or source is None:
            raise ValueError("Cannot update policies on null item/bitstream")
        if not (source.name or "").strip():
            self.log.warning("Bitstream %s has no name; cannot identify its derivatives", source.id)
            return

        names = [n.strip() for n in (self.cfg.get(FILTER_PLUGINS_PARAM) or []) if n and n.strip()]
        if not names:
            self.log.error("Missing filter plugin names; cannot update policies of derivatives of %s",
                           source.id)
            return

        filters = self.load_filters(names)
        if not filters:
            self.log.warning("Cannot find any of the configured filter plugins: %s", ", ".join(names))
            return

        public = self.public_filters
        for fltr in filters:
            for derivative in self.find_derivative_bitstreams(item, source, fltr):
                self.service.update_derivative(context, derivative, fltr, source, public)

    def find_derivative_bitstreams(self, item: Item, source: Bitstream, fltr: FormatFilter) -> List[Bitstream]:
        """
        return the bitstreams of the item that the given filter would have created from the source:
        those in the filter's bundle whose name matches the filter's name for the derivative.
        """
        if not (source.name or "").strip():
            return []
        want = fltr.get_filtered_name(source.name).strip()
        out = []
        for bundle in item.get_bundles(fltr.bundle_name):
            out.extend(bs for bs in bundle.bitstreams if (bs.name or "").strip() == want)
        return out
