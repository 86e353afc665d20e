import os, pdb, logging
import unittest as test
from datetime import date

from dspace.authz.dbio import inmem
from dspace.authz.context import Context
from dspace.authz import content as dso
from dspace.authz import constants as const
from dspace.authz.policy import AuthorizeService
from dspace.authz.mediafilter import filters as flt
from dspace.authz.mediafilter import updater as upd

def policy_keys(authz, context, obj):
    return set((p.group, p.eperson, p.action, p.rptype, p.start_date, p.end_date)
               for p in authz.get_policies(context, obj))

class UpdaterFixture(object):

    def build(self):
        self.cli = inmem.InMemoryRepositoryClientFactory({}).create_client()
        self.anon = dso.Group.create(self.cli, const.ANONYMOUS_GROUP)
        self.admins = dso.Group.create(self.cli, const.ADMIN_GROUP, members=["admin1"])
        self.staff = dso.Group.create(self.cli, "Staff", members=["ava"])
        self.coll = dso.Collection.create(self.cli, "Theses")
        self.item = dso.Item.create(self.cli, "Thesis", owning_collection=self.coll.id)

        self.orig = self.item.create_bundle("ORIGINAL")
        self.source = self.orig.create_bitstream("thesis.pdf")
        self.text = self.item.create_bundle("TEXT").create_bitstream("thesis.pdf.txt")
        self.thumb = self.item.create_bundle("THUMBNAIL").create_bitstream("thesis.pdf.jpg")
        self.cli.commit()

        self.ctx = Context(self.cli, "admin1")
        self.authz = AuthorizeService()

        self.authz.create_policy(self.ctx, self.source, const.READ, self.staff, rptype=const.TYPE_CUSTOM,
                                 name="embargo", start_date="2030-01-01")
        self.authz.create_policy(self.ctx, self.source, const.WRITE, eperson="ava")
        self.authz.create_policy(self.ctx, self.orig, const.READ, self.staff, rptype=const.TYPE_CUSTOM)

        # stale policies on the derivatives
        self.authz.create_policy(self.ctx, self.text, const.READ, self.anon, rptype=const.TYPE_INHERITED)
        self.authz.create_policy(self.ctx, self.thumb, const.READ, self.staff, rptype=const.TYPE_INHERITED)
        self.ctx.commit()

class TestPolicyUpdaterService(test.TestCase, UpdaterFixture):

    def setUp(self):
        self.build()
        self.svc = upd.PolicyUpdaterService(self.authz)

    def test_has_policy(self):
        pol = self.authz.get_policies_action_filter(self.ctx, self.source, const.READ)[0]
        self.assertTrue(self.svc.has_policy(self.ctx, self.source, pol))
        self.assertFalse(self.svc.has_policy(self.ctx, self.orig, pol))

    def test_derivative_follows_source(self):
        self.svc.update_derivative(self.ctx, self.text, flt.TextExtractionFilter(), self.source,
                                   ["ImageMagickThumbnailFilter"])

        self.assertEqual(policy_keys(self.authz, self.ctx, self.text),
                         policy_keys(self.authz, self.ctx, self.source))
        self.assertEqual(len(self.authz.get_policies(self.ctx, self.text)), 2)
        pol = self.authz.get_policies_action_filter(self.ctx, self.text, const.READ)[0]
        self.assertEqual(pol.name, "embargo")
        self.assertEqual(pol.start_date, date(2030, 1, 1))

        textbundle = self.item.get_bundles("TEXT")[0]
        self.assertEqual(policy_keys(self.authz, self.ctx, textbundle),
                         policy_keys(self.authz, self.ctx, self.orig))

        # doing it again changes nothing
        self.svc.update_derivative(self.ctx, self.text, flt.TextExtractionFilter(), self.source, [])
        self.assertEqual(len(self.authz.get_policies(self.ctx, self.text)), 2)
        self.assertEqual(len(self.authz.get_policies(self.ctx, textbundle)), 1)

    def test_no_filter(self):
        self.svc.update_derivative(self.ctx, self.thumb, None, self.source, ["ImageMagickThumbnailFilter"])
        self.assertEqual(policy_keys(self.authz, self.ctx, self.thumb),
                         policy_keys(self.authz, self.ctx, self.source))

    def test_public_derivative(self):
        thumbbundle = self.item.get_bundles("THUMBNAIL")[0]
        for i in range(2):
            self.svc.update_derivative(self.ctx, self.thumb, flt.ImageMagickThumbnailFilter(), self.source,
                                       ["ImageMagickThumbnailFilter"])

            pols = self.authz.get_policies(self.ctx, self.thumb)
            self.assertEqual(len(pols), 1)
            self.assertEqual((pols[0].group, pols[0].action, pols[0].start_date, pols[0].end_date),
                             (self.anon.id, const.READ, None, None))

            pols = self.authz.get_policies(self.ctx, thumbbundle)
            self.assertEqual([(p.group, p.action) for p in pols], [(self.anon.id, const.READ)])

    def test_public_by_kind(self):
        # a subclass is a different kind of filter
        self.svc.update_derivative(self.ctx, self.thumb, flt.JPEGFilter(), self.source,
                                   ["ImageMagickThumbnailFilter"])
        self.assertEqual(policy_keys(self.authz, self.ctx, self.thumb),
                         policy_keys(self.authz, self.ctx, self.source))

    def test_source_without_policies(self):
        self.authz.remove_all_policies(self.ctx, self.source)
        textbundle = self.item.get_bundles("TEXT")[0]
        self.authz.create_policy(self.ctx, textbundle, const.READ, self.anon)

        self.svc.update_derivative(self.ctx, self.text, flt.TextExtractionFilter(), self.source, [])
        self.assertEqual(self.authz.get_policies(self.ctx, self.text), [])

        # the derivative's bundle is left alone
        self.assertEqual([p.group for p in self.authz.get_policies(self.ctx, textbundle)], [self.anon.id])

    def test_source_not_in_content_bundle(self):
        other = self.item.create_bundle("LICENSE")
        lic = other.create_bitstream("license.txt")
        self.authz.create_policy(self.ctx, lic, const.READ, self.staff)
        self.authz.create_policy(self.ctx, other, const.READ, self.staff)
        textbundle = self.item.get_bundles("TEXT")[0]
        self.authz.create_policy(self.ctx, textbundle, const.READ, self.anon)

        self.svc.update_derivative(self.ctx, self.text, flt.TextExtractionFilter(), lic, [])
        self.assertEqual([p.group for p in self.authz.get_policies(self.ctx, self.text)], [self.staff.id])
        self.assertEqual([p.group for p in self.authz.get_policies(self.ctx, textbundle)], [self.anon.id])

    def test_add_to_bundle_policies(self):
        textbundle = self.item.get_bundles("TEXT")[0]
        pols = self.authz.get_policies(self.ctx, self.orig)
        self.svc.add_to_bundle_policies(self.ctx, textbundle, pols)
        self.svc.add_to_bundle_policies(self.ctx, textbundle, pols)
        self.assertEqual(len(self.authz.get_policies(self.ctx, textbundle)), 1)

class TestMediaFilterRelatedPolicyUpdater(test.TestCase, UpdaterFixture):

    def setUp(self):
        self.build()
        self.svc = upd.PolicyUpdaterService(self.authz)
        self.reg = flt.FilterRegistry.from_config({})
        self.cfg = {
            "filter_plugins": [ "TextExtractionFilter", " ImageMagickThumbnailFilter ", "" ],
            "public_filters": [ "ImageMagickThumbnailFilter", " " ]
        }

    def test_public_filters(self):
        updater = upd.MediaFilterRelatedPolicyUpdater(self.svc, self.reg, self.cfg)
        self.assertEqual(updater.public_filters, ["ImageMagickThumbnailFilter"])
        updater = upd.MediaFilterRelatedPolicyUpdater(self.svc, self.reg)
        self.assertEqual(updater.public_filters, [])

    def test_find_derivative_bitstreams(self):
        updater = upd.MediaFilterRelatedPolicyUpdater(self.svc, self.reg, self.cfg)
        found = updater.find_derivative_bitstreams(self.item, self.source, flt.TextExtractionFilter())
        self.assertEqual([b.id for b in found], [self.text.id])
        found = updater.find_derivative_bitstreams(self.item, self.source, flt.BrandedPreviewJPEGFilter())
        self.assertEqual(found, [])
        found = updater.find_derivative_bitstreams(self.item, self.text, flt.TextExtractionFilter())
        self.assertEqual(found, [])

    def test_null_args(self):
        updater = upd.MediaFilterRelatedPolicyUpdater(self.svc, self.reg, self.cfg)
        with self.assertRaises(ValueError):
            updater.update_policies(self.ctx, None, self.source)
        with self.assertRaises(ValueError):
            updater.update_policies(self.ctx, self.item, None)

    def test_no_plugins(self):
        before = policy_keys(self.authz, self.ctx, self.text)
        updater = upd.MediaFilterRelatedPolicyUpdater(self.svc, self.reg, {})
        updater.update_policies(self.ctx, self.item, self.source)
        self.assertEqual(policy_keys(self.authz, self.ctx, self.text), before)

        updater = upd.MediaFilterRelatedPolicyUpdater(self.svc, self.reg, {"filter_plugins": ["Goober"]})
        updater.update_policies(self.ctx, self.item, self.source)
        self.assertEqual(policy_keys(self.authz, self.ctx, self.text), before)

    def test_update_policies(self):
        updater = upd.MediaFilterRelatedPolicyUpdater(self.svc, self.reg, self.cfg)
        updater.update_policies(self.ctx, self.item, self.source)

        self.assertEqual(policy_keys(self.authz, self.ctx, self.text),
                         policy_keys(self.authz, self.ctx, self.source))
        pols = self.authz.get_policies(self.ctx, self.thumb)
        self.assertEqual([(p.group, p.action) for p in pols], [(self.anon.id, const.READ)])

    def test_unnamed_bitstreams(self):
        updater = upd.MediaFilterRelatedPolicyUpdater(self.svc, self.reg, self.cfg)
        stray = self.item.get_bundles("TEXT")[0].create_bitstream(None)
        unnamed = self.orig.create_bitstream(None)
        self.assertIsNone(unnamed.name)

        found = updater.find_derivative_bitstreams(self.item, self.source, flt.TextExtractionFilter())
        self.assertEqual([b.id for b in found], [self.text.id])
        self.assertEqual(updater.find_derivative_bitstreams(self.item, unnamed, flt.TextExtractionFilter()), [])

        before = (policy_keys(self.authz, self.ctx, self.text), policy_keys(self.authz, self.ctx, stray))
        updater.update_policies(self.ctx, self.item, unnamed)
        self.assertEqual((policy_keys(self.authz, self.ctx, self.text), policy_keys(self.authz, self.ctx, stray)),
                         before)

        updater.update_policies(self.ctx, self.item, self.source)
        self.assertEqual(policy_keys(self.authz, self.ctx, self.text),
                         policy_keys(self.authz, self.ctx, self.source))
        self.assertEqual(policy_keys(self.authz, self.ctx, stray), set())

    def test_update_derivative(self):
        updater = upd.MediaFilterRelatedPolicyUpdater(self.svc, self.reg, self.cfg)
        updater.update_derivative(self.ctx, self.thumb, self.source, flt.ImageMagickThumbnailFilter())
        pols = self.authz.get_policies(self.ctx, self.thumb)
        self.assertEqual([p.group for p in pols], [self.anon.id])


if __name__ == '__main__':
    test.main()
