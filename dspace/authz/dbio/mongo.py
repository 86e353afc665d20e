"""
An implementation of the dbio interface that uses a MongoDB database as it backend store
"""
import re, logging
from copy import deepcopy
from collections.abc import Mapping, MutableMapping
from typing import Iterator, List

from pymongo import MongoClient, ASCENDING

from dspace.base.config import ConfigurationException, merge_config
from .. import constants as const
from ..exceptions import DBIOException
from . import base

_dburl_re = re.compile(r"^mongodb://(\w+(:\S+)?@)?\w+(\.\w+)*(:\d+)?/\w+(\?\w.*)?$")

class MongoRepositoryClient(base.RepositoryClient):
    """
    an implementation of RepositoryClient using a MongoDB database as the backend store.

    Each unit of work runs inside a MongoDB session transaction which is opened lazily on the
    first database access; :py:meth:`commit` commits it and :py:meth:`rollback` aborts it.  (Note
    that transactions require the database to be deployed as a replica set.)
    """

    def __init__(self, dburl: str, config: Mapping, log: logging.Logger=None):
        """
        create the client with its connector to the MongoDB database

        :param str   dburl:  the URL of MongoDB database in the form, 'mongodb://USER:PW@HOST:PORT/DBNAME'
        :param dict config:  the configuration for the client
        :param Logger  log:  the Logger to use for messages
        """
        if not _dburl_re.match(dburl):
            raise ValueError("RepositoryClient: Bad dburl format (need "+
                             "'mongodb://[USER:PASS@]HOST[:PORT]/DBNAME'): "+dburl)
        self._dburl = dburl
        self._mngocli = None
        self._session = None
        super(MongoRepositoryClient, self).__init__(config, None, log)

    def connect(self):
        """
        establish a connection to the database.  This will set the native property to the pymongo
        database object.
        """
        self._mngocli = MongoClient(self._dburl)
        # the proper method to use depends on pymongo version
        if not hasattr(self._mngocli, 'get_database'):
            self._mngocli.get_database = self._mngocli.get_default_database

        self._native = self._mngocli.get_database()

    def disconnect(self):
        """
        close the connection to the database.
        """
        if self._mngocli:
            try:
                self._end_session()
                self._mngocli.close()
            finally:
                self._mngocli = None
                self._native = None

    close = disconnect

    @property
    def native(self):
        """
        the native pymongo database object that contains the repository collections.  Accessing
        this property will implicitly connect this client to the underlying MongoDB database.
        """
        if self._native is None:
            self.connect()
        return self._native

    @property
    def session(self):
        """
        the pymongo ClientSession for the current unit of work.  If one is not yet open, a new
        session is started along with a transaction that lasts until the next call to
        :py:meth:`commit` or :py:meth:`rollback`.
        """
        if self._session is None:
            if self._mngocli is None:
                self.connect()
            self._session = self._mngocli.start_session()
            self._session.start_transaction()
        return self._session

    def _end_session(self):
        if self._session is not None:
            try:
                self._session.end_session()
            finally:
                self._session = None

    def _get_from_coll(self, collname, id) -> MutableMapping:
        try:
            return self.native[collname].find_one({"id": id}, {'_id': False},
                                                    session=self.session)
        except Exception as ex:
            raise DBIOException("Failed to access record with id=%s: %s" % (id, str(ex)), ex)

    def _select_from_coll(self, collname, **constraints) -> Iterator[MutableMapping]:
        try:
            for rec in self.native[collname].find(constraints, {'_id': False}, session=self.session):
                yield rec
        except Exception as ex:
            raise DBIOException("Failed while selecting records: " + str(ex), ex)

    def _select_prop_contains(self, collname, prop, target) -> Iterator[MutableMapping]:
        try:
            for rec in self.native[collname].find({prop: target}, {'_id': False},
                                                    session=self.session):
                yield rec
        except Exception as ex:
            raise DBIOException("Failed while selecting records: " + str(ex), ex)

    def _upsert(self, collname: str, recdata: Mapping) -> bool:
        id = recdata['id']
        try:
            result = self.native[collname].replace_one({"id": id}, deepcopy(recdata), upsert=True,
                                                      session=self.session)
            return result.matched_count == 0
        except Exception as ex:
            raise DBIOException("Failed to save record with id=%s: %s" % (id, str(ex)), ex)

    def _delete_from(self, collname, id) -> bool:
        try:
            results = self.native[collname].delete_one({"id": id}, session=self.session)
            return results.deleted_count > 0
        except Exception as ex:
            raise DBIOException("Failed while deleting record with id=%s: %s" % (id, str(ex)), ex)

    def _delete_where(self, collname, **constraints) -> int:
        try:
            results = self.native[collname].delete_many(constraints, session=self.session)
            return results.deleted_count
        except Exception as ex:
            raise DBIOException("Failed while deleting records: %s" % str(ex), ex)

    def _search_items(self, terms: List[base.SearchTerm], start: int, limit: int) -> List[MutableMapping]:
        ors = []
        for field, value in terms:
            if field == base.RESOURCE_ID:
                ors.append({"id": value})
            elif field == base.LOCATION_COLL:
                ors.append({"location_coll": value})
            else:
                ors.append({"location_comm": value})

        try:
            cursor = self.native[const.ITEMS_COLL].find({"$or": ors}, {'_id': False},
                                                        session=self.session) \
                                                  .sort("id", ASCENDING).skip(start).limit(limit)
            return [rec for rec in cursor]
        except Exception as ex:
            raise DBIOException("Failed while searching for items: " + str(ex), ex)

    def commit(self):
        if self._session is None:
            return
        try:
            if self._session.in_transaction:
                self._session.commit_transaction()
        except Exception as ex:
            raise DBIOException("Failed to commit transaction: " + str(ex), ex)
        finally:
            self._end_session()

    def rollback(self):
        if self._session is None:
            return
        try:
            if self._session.in_transaction:
                self._session.abort_transaction()
        except Exception as ex:
            raise DBIOException("Failed to roll back transaction: " + str(ex), ex)
        finally:
            self._end_session()


class MongoRepositoryClientFactory(base.RepositoryClientFactory):
    """
    a RepositoryClientFactory that creates MongoRepositoryClient instances in which records are
    stored in a MongoDB database.

    This implementation supports the following configuration parameters:

    ``db_url``
        the URL for the MongoDB connection, of the form,
        ``mongodb://``*[USER*``:``*PASS*``@``*]HOST[*``:``*PORT]*``/``*DBNAME*
    """

    def __init__(self, config: Mapping, dburl: str=None):
        """
        Create the factory with the given configuration.

        :param dict config:  the configuration parameters used to configure clients
        :param str   dburl:  the URL for the MongoDB connection; it takes the same form as the
                             ``db_url`` configuration parameter.  If not provided, the value of
                             the ``db_url`` configuration parameter will be used.
        :raise ConfigurationException:  if the database's URL is provided neither as an
                             argument nor a configuration parameter.
        :raise ValueError:  if the specified database URL is of an incorrect form
        """
        super(MongoRepositoryClientFactory, self).__init__(config)
        if not dburl:
            dburl = self._cfg.get("db_url")
            if not dburl:
                raise ConfigurationException("Missing required configuration parameter: db_url",
                                             param="db_url")
        if not _dburl_re.match(dburl):
            raise ValueError("MongoRepositoryClientFactory: Bad dburl format (need "+
                             "'mongodb://[USER:PASS@]HOST[:PORT]/DBNAME'): "+dburl)
        self._dburl = dburl

    def create_client(self, config: Mapping={}, log: logging.Logger=None):
        cfg = merge_config(config, deepcopy(self._cfg))
        return MongoRepositoryClient(self._dburl, cfg, log)
