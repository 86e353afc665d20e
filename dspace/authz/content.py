r"""
Representations of the repository's objects.

Each class here wraps a record (a dictionary) retrieved from the database via a
:py:class:`~dspace.authz.dbio.base.RepositoryClient`.  The objects form a containment graph:

  *  a :py:class:`Community` may be contained in other (parent) communities;
  *  a :py:class:`Collection` is contained in one or more communities;
  *  an :py:class:`Item` is owned by one collection (and may be mapped into others);
  *  an item contains named :py:class:`Bundle`\ s (e.g. "ORIGINAL", "TEXT", "THUMBNAIL");
  *  a bundle contains :py:class:`Bitstream`\ s; a bitstream may appear in more than one bundle.

Links to related objects are stored as identifiers and resolved lazily through the client, so
an object's view of its relations is always that of the database.  Changes to an object's own
properties are not written to the database until :py:meth:`DSpaceObject.save` is called.
"""
from collections.abc import Mapping, MutableMapping
from typing import List

from . import constants as const
from .dbio.base import RepositoryClient

__all__ = [ "DSpaceObject", "Community", "Collection", "Item", "Bundle", "Bitstream", "Group", "EPerson",
            "load_object", "find_object" ]

class DSpaceObject(object):
    """
    a base class for objects stored in the repository database
    """
    type = None
    coll = None

    def __init__(self, recdata: MutableMapping, dbclient: RepositoryClient):
        """
        initialize the object with a dictionary retrieved from the underlying collection.
        The dictionary must include an `id` property with a valid ID value.
        """
        if not recdata.get('id'):
            raise ValueError("Record data is missing its 'id' property")
        self._cli = dbclient
        self._data = self._initialize(recdata)

    def _initialize(self, recdata: MutableMapping) -> MutableMapping:
        recdata['type'] = self.type
        if 'name' not in recdata:
            recdata['name'] = ""
        return recdata

    @classmethod
    def create(cls, dbclient: RepositoryClient, name: str, **props):
        """
        create a new object of this type with the given name and save it to the database
        """
        data = dict(props)
        data['id'] = dbclient.new_id()
        data['name'] = name
        out = cls(data, dbclient)
        out.save()
        return out

    @property
    def id(self) -> str:
        """
        the unique identifier for the object
        """
        return self._data['id']

    @property
    def name(self) -> str:
        return self._data.get('name', "")

    @name.setter
    def name(self, val):
        self._data['name'] = val

    @property
    def type_name(self) -> str:
        """
        the name of this type of object as used in messages (e.g. "Item")
        """
        return self.__class__.__name__

    def save(self):
        """
        write this object's data to the database
        """
        self._cli.upsert(self.coll, self._data)

    def to_dict(self) -> Mapping:
        return dict(self._data)

    def _load_all(self, cls, collname, ids):
        out = []
        for id in ids:
            rec = self._cli.get(collname, id)
            if rec:
                out.append(cls(rec, self._cli))
        return out

    def __eq__(self, other):
        return isinstance(other, DSpaceObject) and self.type == other.type and self.id == other.id

    def __hash__(self):
        return hash((self.type, self.id))

    def __repr__(self):
        return "<{0} {1}>".format(self.type_name, self.id)


class Community(DSpaceObject):
    """
    a top-level grouping of collections (and sub-communities)
    """
    type = const.COMMUNITY
    coll = const.COMMUNITIES_COLL

    def _initialize(self, recdata):
        out = super(Community, self)._initialize(recdata)
        out.setdefault('parents', [])
        return out

    @property
    def parent_communities(self) -> List["Community"]:
        return self._load_all(Community, const.COMMUNITIES_COLL, self._data['parents'])


class Collection(DSpaceObject):
    """
    a grouping of items within one or more communities
    """
    type = const.COLLECTION
    coll = const.COLLECTIONS_COLL

    def _initialize(self, recdata):
        out = super(Collection, self)._initialize(recdata)
        out.setdefault('communities', [])
        return out

    @property
    def communities(self) -> List[Community]:
        return self._load_all(Community, const.COMMUNITIES_COLL, self._data['communities'])


class Item(DSpaceObject):
    """
    the basic unit of content in the repository:  a described object whose files are organized
    into named bundles.
    """
    type = const.ITEM
    coll = const.ITEMS_COLL

    def _initialize(self, recdata):
        out = super(Item, self)._initialize(recdata)
        out.setdefault('owning_collection', None)
        out.setdefault('collections', [])
        out.setdefault('bundles', [])
        return out

    @property
    def owning_collection(self) -> Collection:
        """
        the collection that owns this item, or None if it is not owned by one
        """
        if not self._data['owning_collection']:
            return None
        rec = self._cli.get(const.COLLECTIONS_COLL, self._data['owning_collection'])
        return Collection(rec, self._cli) if rec else None

    @property
    def collections(self) -> List[Collection]:
        return self._load_all(Collection, const.COLLECTIONS_COLL, self._data['collections'])

    @property
    def bundles(self) -> List["Bundle"]:
        """
        the bundles in this item, in order
        """
        return self._load_all(Bundle, const.BUNDLES_COLL, self._data['bundles'])

    def get_bundles(self, name: str=None) -> List["Bundle"]:
        """
        return the bundles in this item that have the given name (or all of them if name is None)
        """
        return [b for b in self.bundles if name is None or b.name == name]

    def create_bundle(self, name: str) -> "Bundle":
        """
        create a new, empty bundle with the given name and add it to this item
        """
        out = Bundle.create(self._cli, name, item=self.id)
        self._data['bundles'].append(out.id)
        self.save()
        return out


class Bundle(DSpaceObject):
    """
    a named grouping of bitstreams within an item
    """
    type = const.BUNDLE
    coll = const.BUNDLES_COLL

    def _initialize(self, recdata):
        out = super(Bundle, self)._initialize(recdata)
        out.setdefault('item', None)
        out.setdefault('bitstreams', [])
        return out

    @property
    def item(self) -> Item:
        if not self._data['item']:
            return None
        rec = self._cli.get(const.ITEMS_COLL, self._data['item'])
        return Item(rec, self._cli) if rec else None

    @property
    def bitstreams(self) -> List["Bitstream"]:
        return self._load_all(Bitstream, const.BITSTREAMS_COLL, self._data['bitstreams'])

    def add_bitstream(self, bitstream: "Bitstream"):
        """
        add the given bitstream to this bundle
        """
        if bitstream.id not in self._data['bitstreams']:
            self._data['bitstreams'].append(bitstream.id)
            self.save()
        bitstream._add_to_bundle(self.id)

    def create_bitstream(self, name: str, **props) -> "Bitstream":
        """
        create a new bitstream with the given name and add it to this bundle
        """
        out = Bitstream.create(self._cli, name, **props)
        self.add_bitstream(out)
        return out


class Bitstream(DSpaceObject):
    """
    a single file within the repository
    """
    type = const.BITSTREAM
    coll = const.BITSTREAMS_COLL

    def _initialize(self, recdata):
        out = super(Bitstream, self)._initialize(recdata)
        out.setdefault('bundles', [])
        return out

    @property
    def bundles(self) -> List[Bundle]:
        """
        the bundles this bitstream is part of; the first is the bundle it was originally added to
        """
        return self._load_all(Bundle, const.BUNDLES_COLL, self._data['bundles'])

    @property
    def format(self) -> str:
        return self._data.get('format')

    def _add_to_bundle(self, bundleid):
        if bundleid not in self._data['bundles']:
            self._data['bundles'].append(bundleid)
            self.save()


class Group(DSpaceObject):
    """
    a named group of people (epersons) that can be granted access to objects
    """
    type = const.GROUP
    coll = const.GROUPS_COLL

    def _initialize(self, recdata):
        out = super(Group, self)._initialize(recdata)
        out.setdefault('members', [])
        return out

    @property
    def members(self) -> List[str]:
        return list(self._data['members'])

    def is_member(self, epersonid: str) -> bool:
        return epersonid in self._data['members']

    def add_member(self, *epersonids):
        for id in epersonids:
            if id not in self._data['members']:
                self._data['members'].append(id)
        self.save()


class EPerson(DSpaceObject):
    """
    a person known to the repository
    """
    type = const.EPERSON
    coll = const.EPERSONS_COLL

    @property
    def email(self) -> str:
        return self._data.get('email')


_classes = dict((c.type, c) for c in (Community, Collection, Item, Bundle, Bitstream, Group, EPerson))

def load_object(recdata: MutableMapping, dbclient: RepositoryClient, objtype: str=None) -> DSpaceObject:
    """
    wrap the given record into the DSpaceObject class appropriate for its type
    :param dict recdata:  the record data; its ``type`` property is consulted if ``objtype`` is
                          not given.
    """
    if not objtype:
        objtype = recdata.get('type')
    cls = _classes.get(objtype)
    if not cls:
        raise ValueError("unrecognized object type: "+str(objtype))
    return cls(recdata, dbclient)

def find_object(dbclient: RepositoryClient, id, objtype: str=None) -> DSpaceObject:
    """
    look up an object by its identifier.  If ``objtype`` is given, only objects of that type will
    be searched for; otherwise, all repository object types are searched.
    :return:  the object or None if it was not found
    """
    if objtype:
        rec = dbclient.get(const.COLL_FOR_TYPE[objtype], str(id))
    else:
        rec = dbclient.find_object(id)
    if not rec:
        return None
    return load_object(rec, dbclient, objtype)
