import pdb
import unittest as test

from dspace.authz.dbio import inmem
from dspace.authz.context import Context
from dspace.authz import content as dso
from dspace.authz import constants as const
from dspace.authz.policy import AuthorizeService
from dspace.authz.validator import AccessConditionValidator, ACCESS_CONDITIONS_REQUIRED
from dspace.authz.utils.validate import ValidationResults

class TestAccessConditionValidator(test.TestCase):

    def setUp(self):
        self.cli = inmem.InMemoryRepositoryClientFactory({}).create_client()
        self.anon = dso.Group.create(self.cli, const.ANONYMOUS_GROUP)
        self.coll = dso.Collection.create(self.cli, "Theses")
        self.item = dso.Item.create(self.cli, "Thesis", owning_collection=self.coll.id)
        self.cli.commit()

        self.ctx = Context(self.cli, "ava")
        self.authz = AuthorizeService()
        self.cfg = { "required": True, "options": ["openaccess", "embargo"] }
        self.val = AccessConditionValidator(self.authz, self.cfg)

    def test_ctor(self):
        self.assertTrue(self.val.required)
        self.assertEqual(self.val.option_names, ["openaccess", "embargo"])
        self.assertEqual(self.val.step_id, "defaultAC")

        val = AccessConditionValidator(self.authz)
        self.assertFalse(val.required)
        self.assertEqual(val.option_names, [])

    def test_missing(self):
        res = self.val.validate(self.ctx, self.item)
        self.assertFalse(res.ok())
        self.assertEqual(res.target, self.item.id)
        issue = res.failed()[0]
        self.assertEqual(issue.label, ACCESS_CONDITIONS_REQUIRED)
        self.assertEqual(issue.paths, ["/sections/defaultAC"])
        self.assertIn("openaccess, embargo", issue.comments[0])

        # a policy with some other name doesn't count
        self.authz.create_policy(self.ctx, self.item, const.READ, self.anon, rptype=const.TYPE_CUSTOM,
                                 name="lease")
        self.assertFalse(self.val.is_access_condition_present(self.ctx, self.item))

    def test_present(self):
        self.authz.create_policy(self.ctx, self.item, const.READ, self.anon, rptype=const.TYPE_CUSTOM,
                                 name="embargo", start_date="2030-01-01")
        self.assertTrue(self.val.is_access_condition_present(self.ctx, self.item))

        results = ValidationResults("submission")
        res = AccessConditionValidator(self.authz, self.cfg, "upload").validate(self.ctx, self.item, results)
        self.assertIs(res, results)
        self.assertTrue(res.ok())
        self.assertEqual(res.passed()[0].paths, ["/sections/upload"])

    def test_not_required(self):
        val = AccessConditionValidator(self.authz, {"required": False, "options": ["openaccess"]})
        res = val.validate(self.ctx, self.item)
        self.assertTrue(res.ok())
        self.assertEqual(res.applied(), [])


if __name__ == '__main__':
    test.main()
