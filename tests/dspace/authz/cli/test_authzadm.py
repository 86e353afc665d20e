"""
test the authzadm command-line suite and its subcommands
"""
import os, sys, logging, argparse, pdb, json, tempfile
import unittest as test
from unittest.mock import patch
from pathlib import Path

from dspace.authz.utils import cli
from dspace.authz.cli import authzadm, bulkaccess, derivpol, get_user, create_context
from dspace.authz.dbio import inmem
from dspace.authz.context import Context
from dspace.authz.inherit import ItemPolicyService
from dspace.authz import content as dso
from dspace.authz import constants as const
from dspace.authz.policy import AuthorizeService
from dspace.base.config import ConfigurationException

testdir = Path(__file__).parents[0]
datadir = testdir.parent / "data"
conffile = str(datadir / "authz_conf.yml")

class TestHelpers(test.TestCase):

    def test_get_user(self):
        args = argparse.Namespace(user="ava")
        self.assertEqual(get_user(args, {"user": "admin1"}), "ava")
        args = argparse.Namespace(user=None)
        self.assertEqual(get_user(args, {"user": "admin1"}), "admin1")
        self.assertIsNone(get_user(args, {}))

    def test_create_context(self):
        args = argparse.Namespace(user="admin1")
        ctx = create_context(args, {"dbio": {"factory": "inmem"}})
        self.assertEqual(ctx.current_user, "admin1")
        self.assertTrue(ctx.is_valid)

        with self.assertRaises(ConfigurationException):
            create_context(args, {})

class TestAuthzadm(test.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory(prefix="_test_authzadm.")
        self.rootlog = logging.getLogger()
        self.handlers = list(self.rootlog.handlers)

        self.cli = inmem.InMemoryRepositoryClientFactory({}).create_client()
        self.anon = dso.Group.create(self.cli, const.ANONYMOUS_GROUP)
        self.admins = dso.Group.create(self.cli, const.ADMIN_GROUP, members=["admin1"])
        self.coll = dso.Collection.create(self.cli, "Theses")
        self.item = dso.Item.create(self.cli, "Thesis", owning_collection=self.coll.id)
        self.source = self.item.create_bundle("ORIGINAL").create_bitstream("thesis.pdf")
        self.thumb = self.item.create_bundle("THUMBNAIL").create_bitstream("thesis.pdf.jpg")
        self.cli.commit()
        self.authz = AuthorizeService()

    def tearDown(self):
        for h in list(self.rootlog.handlers):
            if h not in self.handlers:
                self.rootlog.removeHandler(h)
                h.close()
        self.tmpdir.cleanup()

    def context_for(self, args, config, log=None):
        return Context(self.cli, args.user, config)

    def authzadm(self, *args):
        return authzadm.main("authzadm", ["-q", "-w", self.tmpdir.name, "-c", conffile] + list(args))

    def write_request(self, filename, data):
        with open(os.path.join(self.tmpdir.name, filename), 'w') as fd:
            json.dump(data, fd)

    def read_policies(self, obj):
        ctx = Context(self.cli)
        return self.authz.get_policies_action_filter(ctx, obj, const.READ)

    def test_parse(self):
        suite = cli.CLISuite("authzadm")
        suite.load_subcommand(bulkaccess)
        suite.load_subcommand(derivpol)

        args = suite.parse_args("-q -U admin1 bulk-access -f req.json -u abc -u def".split())
        self.assertEqual(args.cmd, "bulk-access")
        self.assertEqual(args.user, "admin1")
        self.assertEqual(args.file, "req.json")
        self.assertEqual(args.uuids, ["abc", "def"])

        args = suite.parse_args("derive-policies item1 bs1".split())
        self.assertEqual(args.cmd, "derive-policies")
        self.assertEqual(args.item, "item1")
        self.assertEqual(args.bitstream, "bs1")
        self.assertIsNone(args.user)

    def test_no_command(self):
        with self.assertRaises(cli.CommandFailure) as cm:
            authzadm.main("authzadm", ["-q", "-w", self.tmpdir.name])
        self.assertEqual(cm.exception.stat, 2)

    def test_missing_dbio(self):
        cfgfile = os.path.join(self.tmpdir.name, "empty.yml")
        with open(cfgfile, 'w') as fd:
            fd.write("page_size: 5\n")
        self.write_request("req.json", {"item": {"mode": "add", "accessConditions": [{"name": "openaccess"}]}})

        with self.assertRaises(cli.CommandFailure) as cm:
            authzadm.main("authzadm", ["-q", "-w", self.tmpdir.name, "-c", cfgfile, "-U", "admin1",
                                       "bulk-access", "-f", "req.json", "-u", self.item.id])
        self.assertEqual(cm.exception.stat, 6)
        self.assertEqual(cm.exception.cmd, "bulk-access")

    @patch("dspace.authz.cli.bulkaccess.create_context")
    def test_bulk_access(self, mock_create):
        mock_create.side_effect = self.context_for
        self.authzadm("-U", "admin1", "bulk-access", "-f", str(datadir / "bulk_item_replace.json"),
                      "-u", self.coll.id)

        pols = self.read_policies(self.item)
        self.assertEqual([(p.group, p.name) for p in pols], [(self.anon.id, "openaccess")])
        self.assertTrue(os.path.isfile(os.path.join(self.tmpdir.name, "authzadm.log")))

    @patch("dspace.authz.cli.bulkaccess.create_context")
    def test_bulk_access_relative_file(self, mock_create):
        mock_create.side_effect = self.context_for
        self.write_request("req.json", {"bitstream": {"mode": "add",
                                                      "accessConditions": [{"name": "openaccess"}]}})
        self.authzadm("-U", "admin1", "bulk-access", "-f", "req.json", "-u", self.item.id)
        self.assertEqual([p.name for p in self.read_policies(self.source)], ["openaccess"])

    @patch("dspace.authz.cli.bulkaccess.create_context")
    def test_bulk_access_not_authorized(self, mock_create):
        mock_create.side_effect = self.context_for
        with self.assertRaises(cli.CommandFailure) as cm:
            self.authzadm("-U", "ava", "bulk-access", "-f", str(datadir / "bulk_item_replace.json"),
                          "-u", self.coll.id)
        self.assertEqual(cm.exception.stat, 9)
        self.assertEqual(self.read_policies(self.item), [])

    @patch("dspace.authz.cli.bulkaccess.create_context")
    def test_bulk_access_invalid(self, mock_create):
        mock_create.side_effect = self.context_for
        self.write_request("req.json", {"item": {"mode": "add", "accessConditions": [{"name": "goober"}]}})
        with self.assertRaises(cli.CommandFailure) as cm:
            self.authzadm("-U", "admin1", "bulk-access", "-f", "req.json", "-u", self.coll.id)
        self.assertEqual(cm.exception.stat, 3)
        self.assertIn("Invalid Item access condition: <goober>", str(cm.exception))

        with self.assertRaises(cli.CommandFailure) as cm:
            self.authzadm("-U", "admin1", "bulk-access", "-f", "goober.json", "-u", self.coll.id)
        self.assertEqual(cm.exception.stat, 3)

        with self.assertRaises(cli.CommandFailure) as cm:
            self.authzadm("-U", "admin1", "bulk-access", "-f", str(datadir / "bulk_bad_mode.json"),
                          "-u", self.coll.id)
        self.assertEqual(cm.exception.stat, 3)
        self.assertEqual(self.read_policies(self.item), [])

    @patch("dspace.authz.cli.bulkaccess.create_context")
    def test_bulk_access_partial_failure(self, mock_create):
        mock_create.side_effect = self.context_for
        with patch.object(ItemPolicyService, "adjust_item_policies", side_effect=RuntimeError("db gone")):
            with self.assertRaises(cli.CommandFailure) as cm:
                self.authzadm("-U", "admin1", "bulk-access", "-f", str(datadir / "bulk_item_replace.json"),
                              "-u", self.coll.id)
        self.assertEqual(cm.exception.stat, 11)
        self.assertIn("1 object(s) could not be updated", str(cm.exception))
        self.assertEqual(self.read_policies(self.item), [])

    @patch("dspace.authz.cli.derivpol.create_context")
    def test_derive_policies(self, mock_create):
        mock_create.side_effect = self.context_for
        ctx = Context(self.cli, "admin1")
        self.authz.create_policy(ctx, self.thumb, const.READ, self.admins)
        ctx.commit()

        self.authzadm("-U", "admin1", "derive-policies", self.item.id, self.source.id)
        self.assertEqual([p.group for p in self.read_policies(self.thumb)], [self.anon.id])

    @patch("dspace.authz.cli.derivpol.create_context")
    def test_derive_policies_fails(self, mock_create):
        mock_create.side_effect = self.context_for

        with self.assertRaises(cli.CommandFailure) as cm:
            self.authzadm("-U", "admin1", "derive-policies", "goober", self.source.id)
        self.assertEqual(cm.exception.stat, 3)
        self.assertIn("goober: item not found", str(cm.exception))

        with self.assertRaises(cli.CommandFailure) as cm:
            self.authzadm("-U", "admin1", "derive-policies", self.item.id, self.item.id)
        self.assertEqual(cm.exception.stat, 3)
        self.assertIn("bitstream not found", str(cm.exception))

        with self.assertRaises(cli.CommandFailure) as cm:
            self.authzadm("-U", "ava", "derive-policies", self.item.id, self.source.id)
        self.assertEqual(cm.exception.stat, 9)
        self.assertEqual(cm.exception.cmd, "derive-policies")


if __name__ == '__main__':
    test.main()
