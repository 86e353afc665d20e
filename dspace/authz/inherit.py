"""
The rules by which items and bitstreams inherit READ policies from the collection that owns them.

A collection carries DEFAULT_ITEM_READ and DEFAULT_BITSTREAM_READ policies that serve as templates
for the READ policies of the items (and their bitstreams) it owns.  When an item or bitstream has
no explicitly set (CUSTOM) READ policy, copies of these defaults are attached to it as INHERITED
READ policies.

When the ``inheritance_read_append_mode`` configuration parameter is true, the defaults are
appended even when CUSTOM READ policies are present, unless one of them is an embargo (i.e. one
whose start date is in the future).
"""
import logging
from collections.abc import Mapping
from typing import List

from dspace.base.config import get_bool
from . import constants as const
from .content import DSpaceObject, Item, Collection, Bitstream
from .context import Context
from .policy import AuthorizeService, ResourcePolicy
from .utils.dates import today
from .utils.logging import blab

APPEND_MODE_PARAM = "inheritance_read_append_mode"

class ItemPolicyService(object):
    """
    a service that (re)computes the inherited READ policies of items and bitstreams
    """

    def __init__(self, authz: AuthorizeService, config: Mapping=None, log: logging.Logger=None):
        """
        create the service
        :param AuthorizeService authz:  the service to use to access policies
        :param dict config:  the configuration; the ``inheritance_read_append_mode`` parameter is
                             consulted.
        :param Logger log:   the Logger to use for messages
        """
        self.authz = authz
        if config is None:
            config = {}
        self.cfg = config
        if not log:
            log = logging.getLogger("authz.inherit")
        self.log = log

    @property
    def append_mode(self) -> bool:
        return get_bool(self.cfg, APPEND_MODE_PARAM, False)

    def adjust_item_policies(self, context: Context, item: Item, collection: Collection):
        """
        attach to the item the owning collection's default item READ policies, unless the item's
        own CUSTOM READ policies take precedence.  Submission and workflow policies left on the
        item are removed.
        :param Context context:       the current context
        :param Item item:             the item to adjust
        :param Collection collection: the collection to inherit from; if None, only the removal
                                      of submission and workflow policies is done.
        """
        self._remove_process_policies(context, item)
        if not collection:
            self.log.info("Item %s has no owning collection to inherit policies from", item.id)
            return

        defaults = self.authz.get_policies_action_filter(context, collection, const.DEFAULT_ITEM_READ)
        if not defaults:
            self.log.info("Collection %s has no default item READ policies to inherit", collection.id)
            return
        self._add_default_policies(context, item, defaults)

    def adjust_bitstream_policies(self, context: Context, item: Item, collection: Collection,
                                  bitstream: Bitstream):
        """
        reset the policies of a bitstream that are not CUSTOM policies to those it inherits:  the
        item's CUSTOM READ policies and the collection's default bitstream READ policies.
        :param Context context:       the current context
        :param Item item:             the item the bitstream is part of
        :param Collection collection: the collection that owns the item
        :param Bitstream bitstream:   the bitstream to adjust
        """
        self.authz.remove_policies_not_of_type(context, bitstream, const.TYPE_CUSTOM)

        self._add_default_policies(context, bitstream, self._custom_read_policies(context, item))

        if not collection:
            self.log.info("Item %s has no owning collection to inherit policies from", item.id)
            return
        defaults = self.authz.get_policies_action_filter(context, collection, const.DEFAULT_BITSTREAM_READ)
        if not defaults:
            self.log.info("Collection %s has no default bitstream READ policies to inherit", collection.id)
            return
        self._add_default_policies(context, bitstream, defaults)

    def _remove_process_policies(self, context, dso):
        self.authz.remove_policies(context, dso, const.TYPE_SUBMISSION)
        self.authz.remove_policies(context, dso, const.TYPE_WORKFLOW)

    def _custom_read_policies(self, context, dso) -> List[ResourcePolicy]:
        return [p for p in self.authz.find_policies_by_type(context, dso, const.TYPE_CUSTOM)
                  if p.action == const.READ]

    def _should_inherit(self, context, dso) -> bool:
        custom = self._custom_read_policies(context, dso)
        if not custom:
            return True
        if not self.append_mode:
            return False

        # an embargo blocks inheritance even in append mode
        now = today()
        return not any(p.start_date and p.start_date > now for p in custom)

    def _add_default_policies(self, context: Context, dso: DSpaceObject, templates: List[ResourcePolicy]):
        if not templates or not self._should_inherit(context, dso):
            return

        for tmpl in templates:
            if self._identical_in_place(context, dso, tmpl):
                blab(self.log, "Identical READ policy already on %s %s", dso.type_name, dso.id)
                continue
            self.authz.create_policy(context, dso, const.READ, tmpl.group, tmpl.eperson,
                                     rptype=const.TYPE_INHERITED, name=tmpl.name,
                                     description=tmpl.description,
                                     start_date=tmpl.start_date, end_date=tmpl.end_date)

    def _identical_in_place(self, context, dso, tmpl: ResourcePolicy) -> bool:
        key = (tmpl.group, tmpl.eperson, const.READ, tmpl.start_date, tmpl.end_date)
        return any(p.equivalence_key() == key
                   for p in self.authz.get_policies_action_filter(context, dso, const.READ))
