import os, json, pdb, logging
import unittest as test
from unittest.mock import patch

from pymongo import MongoClient

from dspace.authz.dbio import mongo, base
from dspace.authz import dbio
from dspace.authz import constants as const
from dspace.base.config import ConfigurationException

dburl = None
if os.environ.get('MONGO_TESTDB_URL'):
    dburl = os.environ.get('MONGO_TESTDB_URL')

def drop_all():
    client = MongoClient(dburl)
    if not hasattr(client, 'get_database'):
        client.get_database = client.get_default_database
    db = client.get_database()
    for coll in list(const.COLL_FOR_TYPE.values()) + [const.POLICIES_COLL]:
        if coll in db.list_collection_names():
            db.drop_collection(coll)
    client.close()

class TestMongoRepositoryClientFactoryConfig(test.TestCase):

    def test_bad_url(self):
        with self.assertRaises(ValueError):
            mongo.MongoRepositoryClientFactory({}, "http://localhost/goob")
        with self.assertRaises(ConfigurationException):
            mongo.MongoRepositoryClientFactory({})

    def test_create_client_factory(self):
        fact = dbio.create_client_factory({"factory": "mongo", "db_url": "mongodb://localhost:27017/testdb"})
        self.assertTrue(isinstance(fact, mongo.MongoRepositoryClientFactory))

        env = dict(os.environ)
        env.pop("DSPACE_MONGODB_URL", None)
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(ConfigurationException):
                dbio.create_client_factory({"factory": "mongo"})
        with patch.dict(os.environ, {"DSPACE_MONGODB_URL": "mongodb://localhost:27017/envdb"}):
            fact = dbio.create_client_factory({"factory": "mongo"})
            self.assertEqual(fact._dburl, "mongodb://localhost:27017/envdb")

@test.skipIf(not os.environ.get('MONGO_TESTDB_URL'), "test mongodb not available")
class TestMongoRepositoryClient(test.TestCase):

    def setUp(self):
        self.cli = mongo.MongoRepositoryClientFactory({}, dburl).create_client()

    def tearDown(self):
        self.cli.disconnect()
        drop_all()

    def test_upsert_get(self):
        self.assertIsNone(self.cli.get(const.BITSTREAMS_COLL, "bs1"))
        self.assertTrue(self.cli.upsert(const.BITSTREAMS_COLL, {"id": "bs1", "name": "a.pdf"}))
        self.assertEqual(self.cli.get(const.BITSTREAMS_COLL, "bs1"), {"id": "bs1", "name": "a.pdf"})
        self.assertFalse(self.cli.upsert(const.BITSTREAMS_COLL, {"id": "bs1", "name": "b.pdf"}))
        self.assertEqual(self.cli.get(const.BITSTREAMS_COLL, "bs1")['name'], "b.pdf")

    def test_select_delete(self):
        for i in range(4):
            self.cli.upsert(const.POLICIES_COLL, {"id": "p%d" % i, "dso": "bs%d" % (i % 2), "action": "READ"})
        self.assertEqual(len(list(self.cli.select(const.POLICIES_COLL, dso="bs0"))), 2)
        self.assertTrue(self.cli.delete(const.POLICIES_COLL, "p0"))
        self.assertFalse(self.cli.delete(const.POLICIES_COLL, "p0"))
        self.assertEqual(self.cli.delete_where(const.POLICIES_COLL, dso="bs1"), 2)
        self.assertEqual([r['id'] for r in self.cli.select(const.POLICIES_COLL)], ["p2"])

    def test_select_containing(self):
        self.cli.upsert(const.GROUPS_COLL, {"id": "g1", "members": ["ava", "bob"]})
        self.cli.upsert(const.GROUPS_COLL, {"id": "g2", "members": ["bob"]})
        self.assertEqual(sorted(r['id'] for r in self.cli.select_containing(const.GROUPS_COLL, "members", "bob")),
                         ["g1", "g2"])

    def test_search_items(self):
        self.cli.upsert(const.COMMUNITIES_COLL, {"id": "top", "parents": []})
        self.cli.upsert(const.COLLECTIONS_COLL, {"id": "c1", "communities": ["top"]})
        for id in "i3 i1 i2".split():
            self.cli.upsert(const.ITEMS_COLL, {"id": id, "owning_collection": "c1"})
        self.cli.upsert(const.ITEMS_COLL, {"id": "i0"})

        found = self.cli.search_items([(base.LOCATION_COMM, "top")])
        self.assertEqual([r['id'] for r in found], ["i1", "i2", "i3"])
        found = self.cli.search_items([(base.LOCATION_COLL, "c1"), (base.RESOURCE_ID, "i0")], 1, 2)
        self.assertEqual([r['id'] for r in found], ["i1", "i2"])

    def test_commit_rollback(self):
        other = mongo.MongoRepositoryClientFactory({}, dburl).create_client()
        try:
            self.cli.upsert(const.BITSTREAMS_COLL, {"id": "bs1", "name": "a.pdf"})
            self.cli.commit()
            self.assertEqual(other.get(const.BITSTREAMS_COLL, "bs1")['name'], "a.pdf")
            other.rollback()

            self.cli.upsert(const.BITSTREAMS_COLL, {"id": "bs1", "name": "b.pdf"})
            self.cli.upsert(const.BITSTREAMS_COLL, {"id": "bs2", "name": "c.pdf"})
            self.assertEqual(self.cli.get(const.BITSTREAMS_COLL, "bs1")['name'], "b.pdf")
            self.assertIsNone(other.get(const.BITSTREAMS_COLL, "bs2"))
            other.rollback()

            self.cli.rollback()
            self.assertEqual(self.cli.get(const.BITSTREAMS_COLL, "bs1")['name'], "a.pdf")
            self.assertIsNone(self.cli.get(const.BITSTREAMS_COLL, "bs2"))

            self.assertTrue(self.cli.delete(const.BITSTREAMS_COLL, "bs1"))
            self.cli.rollback()
            self.assertIsNotNone(self.cli.get(const.BITSTREAMS_COLL, "bs1"))
        finally:
            other.disconnect()

    def test_session_per_unit_of_work(self):
        self.assertIsNone(self.cli._session)
        self.cli.get(const.BITSTREAMS_COLL, "bs1")
        sess = self.cli._session
        self.assertIsNotNone(sess)
        self.assertTrue(sess.in_transaction)
        self.cli.upsert(const.BITSTREAMS_COLL, {"id": "bs1"})
        self.assertIs(self.cli._session, sess)
        self.cli.commit()
        self.assertIsNone(self.cli._session)
        self.cli.commit()
        self.cli.rollback()


if __name__ == '__main__':
    test.main()
