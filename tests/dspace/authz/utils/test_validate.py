import pdb
import unittest as test

from dspace.authz.utils import validate as val

class TestValidationIssue(test.TestCase):

    def test_ctor(self):
        issue = val.ValidationIssue("error.goob")
        self.assertEqual(issue.label, "error.goob")
        self.assertEqual(issue.type, val.ERROR)
        self.assertEqual(issue.paths, [])
        self.assertTrue(issue.passed())
        self.assertFalse(issue.failed())
        self.assertEqual(issue.comments, ())

        issue = val.ValidationIssue("error.goob", val.WARN, "/sections/a", False, "it's bad")
        self.assertEqual(issue.type, val.WARN)
        self.assertEqual(issue.paths, ["/sections/a"])
        self.assertTrue(issue.failed())
        self.assertEqual(issue.comments, ("it's bad",))

        with self.assertRaises(ValueError):
            val.ValidationIssue("error.goob", 8)

    def test_str(self):
        issue = val.ValidationIssue("error.goob", val.ERROR, "/sections/a", False)
        issue.add_comment("missing")
        self.assertEqual(str(issue), "REQUIREMENT: error.goob [/sections/a] (missing)")

        issue = val.ValidationIssue("error.goob", val.REC, passed=True)
        self.assertEqual(str(issue), "PASSED: error.goob")

    def test_to_json_obj(self):
        issue = val.ValidationIssue("error.goob", val.REC, ["/a", "/b"], False, ["oops"])
        data = issue.to_json_obj()
        self.assertEqual(data['message'], "error.goob")
        self.assertEqual(data['type'], "recommendation")
        self.assertEqual(data['paths'], ["/a", "/b"])
        self.assertEqual(data['comments'], ["oops"])

class TestValidationResults(test.TestCase):

    def test_results(self):
        res = val.ValidationResults("item1")
        self.assertEqual(res.target, "item1")
        self.assertTrue(res.ok())
        self.assertEqual(res.applied(), [])

        res.add(val.ValidationIssue("a", val.ERROR, passed=True))
        res.add(val.ValidationIssue("b", val.WARN, passed=False))
        res.add(val.ValidationIssue("c", val.REC, passed=False))
        self.assertEqual(len(res.applied()), 3)
        self.assertEqual(len(res.applied(val.PROB)), 2)
        self.assertEqual(res.count_failed(), 2)
        self.assertEqual([i.label for i in res.failed(val.PROB)], ["b"])
        self.assertEqual([i.label for i in res.passed()], ["a"])
        self.assertFalse(res.ok())

        res = val.ValidationResults("item1", val.ERROR)
        res.add(val.ValidationIssue("b", val.WARN, passed=False))
        self.assertTrue(res.ok())
        res.add(val.ValidationIssue("a", val.ERROR, passed=False))
        self.assertFalse(res.ok())


if __name__ == '__main__':
    test.main()
