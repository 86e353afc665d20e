"""
The abstract interface for interacting with the repository database.

This interface is based on the following model:

  *  The repository's objects--communities, collections, items, bundles, bitstreams--as well as
     the groups and people (epersons) that policies grant access to, are each stored in their own
     named collection (see the ``*_COLL`` constants in :py:mod:`dspace.authz.constants`).
  *  Each record in a collection can be expressed as a Python dictionary (which can be exported
     into JSON) and includes a unique ``id`` property (a UUID string).
  *  Resource policies are stored as records in a separate ``policies`` collection; each policy
     refers to the object it protects via its ``dso`` property.
  *  Item records carry denormalized location properties, ``location_coll`` and ``location_comm``,
     listing the collections the item appears in and all of the communities above them.  These
     support the simple search index used to enumerate items under a community or collection.

A :py:class:`RepositoryClient` is a connection to the database that operates within a unit of
work:  :py:meth:`RepositoryClient.commit` makes the changes made since the last commit permanent,
and :py:meth:`RepositoryClient.rollback` undoes them (to the extent that the backend supports it).
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, MutableMapping
from typing import Iterator, List, Tuple
from uuid import uuid4

from .. import constants as const
from ..exceptions import DBIOException

__all__ = [ "RepositoryClient", "RepositoryClientFactory", "SearchTerm", "SEARCH_FIELDS" ]

LOCATION_COMM = "location.comm"
LOCATION_COLL = "location.coll"
RESOURCE_ID   = "search.resourceid"
SEARCH_FIELDS = (LOCATION_COMM, LOCATION_COLL, RESOURCE_ID)

SearchTerm = Tuple[str, str]

class RepositoryClient(ABC):
    """
    a client connected to the repository database.
    """

    def __init__(self, config: Mapping, nativeclient=None, log: logging.Logger=None):
        """
        initialize the client
        :param dict config:  the configuration for the client
        :param nativeclient: the backend-specific connection object (optional)
        :param Logger  log:  the Logger to use for messages; if not provided, a default is used
        """
        self._cfg = config or {}
        self._native = nativeclient
        if not log:
            log = logging.getLogger("authz.dbio")
        self.log = log

    @property
    def native(self):
        """
        the backend-specific connection object
        """
        return self._native

    def new_id(self) -> str:
        """
        return a new, unique identifier for a record
        """
        return str(uuid4())

    def get(self, collname: str, id: str) -> MutableMapping:
        """
        return a copy of the record with the given identifier from the named collection, or None
        if it does not exist
        """
        return self._get_from_coll(collname, str(id))

    def select(self, collname: str, **constraints) -> Iterator[MutableMapping]:
        """
        return an iterator to the records from the named collection whose properties match all of
        the given constraints
        """
        return self._select_from_coll(collname, **constraints)

    def select_containing(self, collname: str, prop: str, target: str) -> Iterator[MutableMapping]:
        """
        return an iterator to the records from the named collection whose list-valued property,
        ``prop``, contains the given ``target`` value
        """
        return self._select_prop_contains(collname, prop, target)

    def upsert(self, collname: str, recdata: MutableMapping) -> bool:
        """
        save the given record to the named collection, inserting it if it does not exist yet.
        Item records have their location properties recomputed before they are saved.
        :return:  True if the record was newly inserted
        """
        if not recdata.get('id'):
            raise DBIOException("upsert(): record is missing required 'id' property")
        if collname == const.ITEMS_COLL:
            self.update_locations(recdata)
        return self._upsert(collname, recdata)

    def delete(self, collname: str, id: str) -> bool:
        """
        delete the record with the given identifier from the named collection
        :return:  False if the record did not exist
        """
        return self._delete_from(collname, str(id))

    def delete_where(self, collname: str, **constraints) -> int:
        """
        delete all records from the named collection matching the given constraints
        :return:  the number of records deleted
        """
        return self._delete_where(collname, **constraints)

    def find_object(self, id) -> MutableMapping:
        """
        look for a repository object (community, collection, item, bundle, or bitstream) with the
        given identifier across all of the object collections.  The returned record will include
        its ``type`` property.
        :param str|UUID id:  the identifier of the object
        :return:  the object record or None if it is not found
        """
        id = str(id)
        for objtype in const.OBJECT_TYPES:
            rec = self._get_from_coll(const.COLL_FOR_TYPE[objtype], id)
            if rec:
                rec['type'] = objtype
                return rec
        return None

    def ancestor_communities(self, collids: List[str]) -> List[str]:
        """
        return the identifiers of all communities that (directly or indirectly) contain the
        collections with the given identifiers
        """
        out = []
        todo = []
        for cid in collids:
            coll = self._get_from_coll(const.COLLECTIONS_COLL, cid)
            if coll:
                todo.extend(coll.get('communities', []))

        while todo:
            commid = todo.pop(0)
            if commid in out:
                continue
            out.append(commid)
            comm = self._get_from_coll(const.COMMUNITIES_COLL, commid)
            if comm:
                todo.extend(comm.get('parents', []))
        return out

    def update_locations(self, itemdata: MutableMapping):
        """
        (re)compute the location properties of the given item record from the collections it is
        in.  The owning collection is always included among the item's collections.
        """
        colls = list(itemdata.get('collections', []))
        if itemdata.get('owning_collection') and itemdata['owning_collection'] not in colls:
            colls.insert(0, itemdata['owning_collection'])
        itemdata['collections'] = colls
        itemdata['location_coll'] = colls
        itemdata['location_comm'] = self.ancestor_communities(colls)

    def search_items(self, terms: List[SearchTerm], start: int=0, limit: int=20) -> List[MutableMapping]:
        """
        return a page of item records matching any of the given search terms, sorted by the items'
        identifiers.
        :param list terms:  a list of (field, value) tuples where field is one of SEARCH_FIELDS
        :param int  start:  the offset of the first matching record to return
        :param int  limit:  the maximum number of records to return
        """
        if start < 0 or limit < 1:
            raise ValueError("search_items(): bad page request: start={0}, limit={1}".format(start, limit))
        for field, value in terms:
            if field not in SEARCH_FIELDS:
                raise ValueError("search_items(): unsupported search field: "+field)
        if not terms:
            return []
        return self._search_items(terms, start, limit)

    @abstractmethod
    def _get_from_coll(self, collname, id) -> MutableMapping:
        """
        return a copy of the record with the given identifier or None if it doesn't exist
        """
        raise NotImplementedError()

    @abstractmethod
    def _select_from_coll(self, collname, **constraints) -> Iterator[MutableMapping]:
        raise NotImplementedError()

    @abstractmethod
    def _select_prop_contains(self, collname, prop, target) -> Iterator[MutableMapping]:
        raise NotImplementedError()

    @abstractmethod
    def _upsert(self, collname: str, recdata: Mapping) -> bool:
        raise NotImplementedError()

    @abstractmethod
    def _delete_from(self, collname, id) -> bool:
        raise NotImplementedError()

    @abstractmethod
    def _delete_where(self, collname, **constraints) -> int:
        raise NotImplementedError()

    @abstractmethod
    def _search_items(self, terms: List[SearchTerm], start: int, limit: int) -> List[MutableMapping]:
        raise NotImplementedError()

    @abstractmethod
    def commit(self):
        """
        make permanent all changes made since the last commit (or rollback)
        """
        raise NotImplementedError()

    @abstractmethod
    def rollback(self):
        """
        undo all changes made since the last commit
        """
        raise NotImplementedError()

    def close(self):
        """
        release any resources held by this client.  This default implementation does nothing.
        """
        pass


class RepositoryClientFactory(ABC):
    """
    an abstract class for creating client connections to the repository database
    """

    def __init__(self, config: Mapping):
        """
        initialize the factory with its configuration
        """
        self._cfg = config or {}

    @abstractmethod
    def create_client(self, config: Mapping={}, log: logging.Logger=None) -> RepositoryClient:
        """
        create a client connected to the repository database
        :param dict config:  client-specific configuration that should be merged over the factory's
                             configuration
        :param Logger  log:  the Logger that the client should use
        """
        raise NotImplementedError()
