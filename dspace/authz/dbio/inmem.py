"""
An implementation of the dbio interface based on a simple in-memory look-up.

This is provided primarily for testing purposes.  Each client keeps an undo log of the prior state
of every record it has touched since the last commit so that a rollback can restore them.
"""
import logging
from copy import deepcopy
from collections.abc import Mapping, MutableMapping
from typing import Iterator, List

from dspace.base.config import merge_config
from .. import constants as const
from . import base

class InMemoryRepositoryClient(base.RepositoryClient):
    """
    an in-memory RepositoryClient implementation
    """

    def __init__(self, dbdata: MutableMapping, config: Mapping, log: logging.Logger=None):
        self._db = dbdata
        super(InMemoryRepositoryClient, self).__init__(config, self._db, log)
        self._undo = {}

    def _remember(self, collname, id):
        key = (collname, id)
        if key not in self._undo:
            self._undo[key] = deepcopy(self._db.get(collname, {}).get(id))

    def _get_from_coll(self, collname, id) -> MutableMapping:
        return deepcopy(self._db.get(collname, {}).get(id))

    def _matches(self, rec, constraints):
        for ck, cv in constraints.items():
            if rec.get(ck) != cv:
                return False
        return True

    def _select_from_coll(self, collname, **constraints) -> Iterator[MutableMapping]:
        for rec in list(self._db.get(collname, {}).values()):
            if self._matches(rec, constraints):
                yield deepcopy(rec)

    def _select_prop_contains(self, collname, prop, target) -> Iterator[MutableMapping]:
        for rec in list(self._db.get(collname, {}).values()):
            if prop in rec and isinstance(rec[prop], (list, tuple)) and target in rec[prop]:
                yield deepcopy(rec)

    def _upsert(self, collname: str, recdata: Mapping) -> bool:
        if collname not in self._db:
            self._db[collname] = {}
        self._remember(collname, recdata['id'])
        exists = bool(self._db[collname].get(recdata['id']))
        self._db[collname][recdata['id']] = deepcopy(recdata)
        return not exists

    def _delete_from(self, collname, id) -> bool:
        if collname in self._db and id in self._db[collname]:
            self._remember(collname, id)
            del self._db[collname][id]
            return True
        return False

    def _delete_where(self, collname, **constraints) -> int:
        coll = self._db.get(collname, {})
        ids = [id for id, rec in coll.items() if self._matches(rec, constraints)]
        for id in ids:
            self._remember(collname, id)
            del coll[id]
        return len(ids)

    def _search_items(self, terms: List[base.SearchTerm], start: int, limit: int) -> List[MutableMapping]:
        matched = []
        for rec in self._db.get(const.ITEMS_COLL, {}).values():
            for field, value in terms:
                if (field == base.RESOURCE_ID and rec.get('id') == value) or \
                   (field == base.LOCATION_COLL and value in rec.get('location_coll', [])) or \
                   (field == base.LOCATION_COMM and value in rec.get('location_comm', [])):
                    matched.append(rec)
                    break
        matched.sort(key=lambda r: r['id'])
        return [deepcopy(r) for r in matched[start:start+limit]]

    def commit(self):
        self._undo = {}

    def rollback(self):
        for (collname, id), rec in self._undo.items():
            coll = self._db.setdefault(collname, {})
            if rec is None:
                coll.pop(id, None)
            else:
                coll[id] = rec
        self._undo = {}


class InMemoryRepositoryClientFactory(base.RepositoryClientFactory):
    """
    a RepositoryClientFactory that creates InMemoryRepositoryClient instances in which records are
    stored in data structures kept in memory.  Records remain in memory for the life of the factory
    and all the clients it creates.
    """

    def __init__(self, config: Mapping, _dbdata=None):
        """
        Create the factory with the given configuration.

        :param dict  config:  the configuration parameters used to configure clients
        :param dict _dbdata:  the initial data for the database.  (Note: internal knowledge of
                              of the in-memory data structure required to use this input.)  If
                              not provided, an empty database is created.
        """
        super(InMemoryRepositoryClientFactory, self).__init__(config)
        self._db = dict((c, {}) for c in const.COLL_FOR_TYPE.values())
        self._db[const.POLICIES_COLL] = {}
        if _dbdata:
            self._db.update(deepcopy(_dbdata))

    def create_client(self, config: Mapping={}, log: logging.Logger=None):
        cfg = merge_config(config, deepcopy(self._cfg))
        return InMemoryRepositoryClient(self._db, cfg, log)
