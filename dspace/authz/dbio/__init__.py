"""
dbio:  a module for accessing the repository's objects and resource policies from the database.

Access to the database starts by obtaining a :py:class:`~dspace.authz.dbio.base.RepositoryClient`
instance from a :py:class:`~dspace.authz.dbio.base.RepositoryClientFactory`.  The choice of backend
is normally made through configuration with :py:func:`create_client_factory`:

.. code-block::
   :caption: Example use of the DBIO module

   from dspace.authz import dbio

   factory = dbio.create_client_factory({ "factory": "mongo",
                                          "db_url": "mongodb://localhost:27017/dspace" })
   cli = factory.create_client()
   item = cli.get(dbio.ITEMS_COLL, itemid)

Two backends are provided:  an in-memory one (``inmem``; mainly for testing) and one backed by
MongoDB (``mongo``).

.. _ref-dbio-config:

Configuration parameters:

``factory``
    (str) the backend type, one of "inmem" or "mongo"
``db_url``
    (str) for the "mongo" backend, the database URL; the ``DSPACE_MONGODB_URL`` environment
    variable, when set, overrides it.
"""
import os
from collections.abc import Mapping

from dspace.base.config import ConfigurationException
from ..constants import (COMMUNITIES_COLL, COLLECTIONS_COLL, ITEMS_COLL, BUNDLES_COLL, BITSTREAMS_COLL,
                         GROUPS_COLL, EPERSONS_COLL, POLICIES_COLL)
from .base import RepositoryClient, RepositoryClientFactory, SEARCH_FIELDS
from .inmem import InMemoryRepositoryClientFactory

def create_client_factory(config: Mapping) -> RepositoryClientFactory:
    """
    create the RepositoryClientFactory selected by the given dbio configuration
    :raises ConfigurationException:  if the given configuration is insufficient or erroneous
    """
    dbtype = config.get("factory")
    if not dbtype:
        raise ConfigurationException("required dbio.factory param missing", param="factory")

    if dbtype == "inmem":
        return InMemoryRepositoryClientFactory(config)

    elif dbtype == "mongo":
        from .mongo import MongoRepositoryClientFactory
        dburl = os.environ.get("DSPACE_MONGODB_URL") or config.get("db_url")
        if not dburl:
            raise ConfigurationException("dbio: mongo factory requires db_url", param="db_url")
        return MongoRepositoryClientFactory(config, dburl)

    raise ConfigurationException(f"unrecognized dbio factory: {dbtype}", param="factory")
