import pdb, logging
import unittest as test

from dspace.authz.dbio import inmem
from dspace.authz.context import Context
from dspace.authz import content as dso
from dspace.authz import constants as const

class TestContext(test.TestCase):

    def setUp(self):
        self.cli = inmem.InMemoryRepositoryClientFactory({}).create_client()
        self.coll = dso.Collection.create(self.cli, "Theses")
        self.item = dso.Item.create(self.cli, "Thesis", owning_collection=self.coll.id)
        self.cli.commit()
        self.ctx = Context(self.cli, "ava", {"page_size": 5})

    def test_ctor(self):
        self.assertIs(self.ctx.dbclient, self.cli)
        self.assertEqual(self.ctx.current_user, "ava")
        self.assertEqual(self.ctx.config, {"page_size": 5})
        self.assertTrue(self.ctx.is_valid)
        self.assertFalse(self.ctx.authorization_ignored)
        self.assertEqual(self.ctx.cache_size, 0)

    def test_ignore_authorization(self):
        with self.ctx.ignore_authorization():
            self.assertTrue(self.ctx.authorization_ignored)
            with self.ctx.ignore_authorization():
                self.assertTrue(self.ctx.authorization_ignored)
            self.assertTrue(self.ctx.authorization_ignored)
        self.assertFalse(self.ctx.authorization_ignored)

        try:
            with self.ctx.ignore_authorization():
                raise RuntimeError("oops")
        except RuntimeError:
            pass
        self.assertFalse(self.ctx.authorization_ignored)

    def test_find(self):
        item = self.ctx.find(self.item.id)
        self.assertEqual(item, self.item)
        self.assertTrue(isinstance(item, dso.Item))
        self.assertEqual(self.ctx.cache_size, 1)
        self.assertIs(self.ctx.find(self.item.id), item)
        self.assertIs(self.ctx.find(self.item.id, const.ITEM), item)
        self.assertIsNone(self.ctx.find(self.item.id, const.COLLECTION))
        self.assertIsNone(self.ctx.find("goob"))

        self.ctx.uncache_entity(item)
        self.assertEqual(self.ctx.cache_size, 0)

    def test_reload_entity(self):
        item = self.ctx.find(self.item.id)
        self.item.name = "Better Thesis"
        self.item.save()
        self.assertEqual(item.name, "Thesis")

        fresh = self.ctx.reload_entity(item)
        self.assertEqual(fresh.name, "Better Thesis")
        self.assertIs(self.ctx.find(self.item.id), fresh)

        self.cli.delete(const.ITEMS_COLL, self.item.id)
        self.assertIsNone(self.ctx.reload_entity(item))
        self.assertEqual(self.ctx.cache_size, 0)

    def test_commit_rollback(self):
        self.ctx.find(self.item.id)
        dso.Item.create(self.cli, "Thesis 2", owning_collection=self.coll.id)
        self.ctx.rollback()
        self.assertEqual(self.ctx.cache_size, 0)
        self.assertEqual(len(list(self.cli.select(const.ITEMS_COLL))), 1)

        dso.Item.create(self.cli, "Thesis 2", owning_collection=self.coll.id)
        self.ctx.commit()
        self.ctx.rollback()
        self.assertEqual(len(list(self.cli.select(const.ITEMS_COLL))), 2)

    def test_complete_abort(self):
        dso.Item.create(self.cli, "Thesis 2", owning_collection=self.coll.id)
        self.ctx.complete()
        self.assertFalse(self.ctx.is_valid)
        self.cli.rollback()
        self.assertEqual(len(list(self.cli.select(const.ITEMS_COLL))), 2)

        ctx = Context(self.cli)
        self.assertIsNone(ctx.current_user)
        dso.Item.create(self.cli, "Thesis 3", owning_collection=self.coll.id)
        ctx.abort()
        self.assertFalse(ctx.is_valid)
        self.assertEqual(len(list(self.cli.select(const.ITEMS_COLL))), 2)


if __name__ == '__main__':
    test.main()
