import pdb
from uuid import UUID
import unittest as test

from dspace.authz.dbio import inmem
from dspace.authz.context import Context
from dspace.authz import content as dso
from dspace.authz import constants as const
from dspace.authz.locator import DSpaceObjectUtils

class TestDSpaceObjectUtils(test.TestCase):

    def setUp(self):
        self.cli = inmem.InMemoryRepositoryClientFactory({}).create_client()
        self.comm = dso.Community.create(self.cli, "Top")
        self.coll = dso.Collection.create(self.cli, "Theses", communities=[self.comm.id])
        self.item = dso.Item.create(self.cli, "Thesis", owning_collection=self.coll.id)
        self.orig = self.item.create_bundle("ORIGINAL")
        self.orig2 = self.item.create_bundle("ORIGINAL")
        self.thumbs = self.item.create_bundle("THUMBNAIL")
        self.bs1 = self.orig.create_bitstream("a.pdf")
        self.bs2 = self.orig.create_bitstream("b.pdf")
        self.cli.commit()

        self.ctx = Context(self.cli, "admin1")
        self.locator = DSpaceObjectUtils()

    def test_find_object(self):
        self.assertEqual(self.locator.find_object(self.ctx, self.item.id), self.item)
        self.assertEqual(self.locator.find_object(self.ctx, UUID(self.coll.id)), self.coll)
        self.assertEqual(self.locator.find_object(self.ctx, self.bs1.id), self.bs1)
        self.assertIsNone(self.locator.find_object(self.ctx, None))
        self.assertIsNone(self.locator.find_object(self.ctx, "a0000000-0000-0000-0000-000000000000"))

    def test_is_valid_target(self):
        self.assertTrue(self.locator.is_valid_target(self.comm))
        self.assertTrue(self.locator.is_valid_target(self.coll))
        self.assertTrue(self.locator.is_valid_target(self.item))
        self.assertFalse(self.locator.is_valid_target(self.orig))
        self.assertFalse(self.locator.is_valid_target(self.bs1))
        self.assertFalse(self.locator.is_valid_target(None))

    def test_select_bundles(self):
        item = self.ctx.find(self.item.id)
        self.assertEqual(self.locator.select_bundles(item), [self.orig, self.orig2])
        self.assertEqual(self.locator.select_bundles(item, ["THUMBNAIL"]), [self.thumbs])
        self.assertEqual(self.locator.select_bundles(item, []), [self.orig, self.orig2, self.thumbs])
        self.assertEqual(self.locator.select_bundles(item, None, [self.orig2.id]), [self.orig2])
        self.assertEqual(self.locator.select_bundles(item, ["TEXT"]), [])

    def test_select_bitstreams(self):
        orig = self.ctx.find(self.orig.id)
        self.assertEqual(self.locator.select_bitstreams(orig), [self.bs1, self.bs2])
        self.assertEqual(self.locator.select_bitstreams(orig, []), [self.bs1, self.bs2])
        self.assertEqual(self.locator.select_bitstreams(orig, [self.bs2.id]), [self.bs2])
        self.assertEqual(self.locator.select_bitstreams(orig, ["goob"]), [])


if __name__ == '__main__':
    test.main()
