"""
Utilities for resolving identifiers to repository objects and for selecting the bundles and
bitstreams of an item that an operation should apply to.
"""
from typing import List, Iterable
from uuid import UUID

from . import constants as const
from .content import DSpaceObject, Item, Bundle, Bitstream
from .context import Context

TARGET_TYPES = (const.COMMUNITY, const.COLLECTION, const.ITEM)

class DSpaceObjectUtils(object):
    """
    a locator for repository objects
    """

    def find_object(self, context: Context, uuid) -> DSpaceObject:
        """
        return the repository object with the given identifier, or None if there is no such object.
        Any type of repository object may be returned.
        :param Context context:  the context to look up the object in
        :param str|UUID   uuid:  the identifier of the object
        """
        if isinstance(uuid, UUID):
            uuid = str(uuid)
        if not uuid:
            return None
        return context.find(uuid)

    def is_valid_target(self, obj: DSpaceObject) -> bool:
        """
        return True if the given object is of a type that bulk operations can be targeted at:
        a Community, a Collection, or an Item.
        """
        return obj is not None and obj.type in TARGET_TYPES

    def select_bundles(self, item: Item, names: Iterable[str]=None,
                       bundle_uuids: Iterable[str]=None) -> List[Bundle]:
        """
        return the bundles of an item that match the given filters.
        :param Item item:       the item whose bundles should be selected
        :param names:           the names of the bundles to select; if None, only the content
                                bundle ("ORIGINAL") is selected.  An empty list selects bundles of
                                any name.
        :param bundle_uuids:    if given and not empty, only bundles with these identifiers are
                                selected
        """
        if names is None:
            names = [const.CONTENT_BUNDLE_NAME]
        names = set(names)
        bundle_uuids = set(str(u) for u in bundle_uuids) if bundle_uuids else set()

        return [b for b in item.bundles
                  if (not names or b.name in names) and (not bundle_uuids or b.id in bundle_uuids)]

    def select_bitstreams(self, bundle: Bundle, uuids: Iterable[str]=None) -> List[Bitstream]:
        """
        return the bitstreams of a bundle, optionally restricted to those with the given identifiers.
        An empty or None ``uuids`` selects all bitstreams.
        """
        uuids = set(str(u) for u in uuids) if uuids else set()
        return [bs for bs in bundle.bitstreams if not uuids or bs.id in uuids]
