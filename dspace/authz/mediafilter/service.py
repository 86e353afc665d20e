"""
The entry points that a derivation pipeline uses to keep derivative policies in step with their
sources.
"""
import logging

from ..content import Item, Bitstream
from ..context import Context
from .filters import FormatFilter
from .updater import PolicyUpdater

class MediaFilterService(object):
    """
    a service used by format-filtering processes to record the derivatives they create and to
    refresh the policies of existing derivatives.
    """

    def __init__(self, updater: PolicyUpdater, log: logging.Logger=None):
        self.updater = updater
        if not log:
            log = logging.getLogger("authz.mediafilter")
        self.log = log

    def register_derivative(self, context: Context, item: Item, source: Bitstream, fltr: FormatFilter,
                            **props) -> Bitstream:
        """
        record the derivative that the given filter made from a source bitstream and give it the
        appropriate policies.  The derivative is placed in the filter's bundle (which is created if
        necessary); if a bitstream with the derivative's name is already there, it is reused.
        :param Context context:    the current context
        :param Item item:          the item containing the source bitstream
        :param Bitstream source:   the bitstream the derivative was made from
        :param FormatFilter fltr:  the filter that made the derivative
        :param props:              other properties to set on a newly created derivative (e.g. format)
        :return:  the derivative bitstream
        :raise ValueError:  if the source bitstream has no name
        """
        if not (source.name or "").strip():
            raise ValueError("Cannot name a derivative of unnamed bitstream %s" % source.id)
        name = fltr.get_filtered_name(source.name)
        bundles = item.get_bundles(fltr.bundle_name)
        if bundles:
            bundle = bundles[0]
        else:
            bundle = item.create_bundle(fltr.bundle_name)

        derivative = None
        for bs in bundle.bitstreams:
            if (bs.name or "").strip() == name:
                derivative = bs
                break
        if derivative:
            self.log.debug("Replacing derivative %s (%s) of %s", derivative.id, name, source.id)
        else:
            derivative = bundle.create_bitstream(name, **props)
            self.log.info("Created derivative %s (%s) of %s in %s", derivative.id, name, source.id,
                          fltr.bundle_name)

        self.updater.update_derivative(context, derivative, source, fltr)
        return derivative

    def update_policies_of_derivative_bitstreams(self, context: Context, item: Item, source: Bitstream):
        """
        update the policies of all the derivatives of the given bitstream
        """
        self.updater.update_policies(context, item, source)
