"""
A simple framework for collecting the results of validation checks.

A validator applies a series of checks to a target (e.g. an item in submission) where each check
tests for some desired characteristic.  The outcome of each check is captured as a
:py:class:`ValidationIssue` which records whether it passed, how severe a failure should be
considered ("error", "warning", or "recommended"), a message key identifying the failed requirement,
and the path to the part of the target it pertains to.  The issues are collected into a
:py:class:`ValidationResults` instance.
"""
from collections import OrderedDict
from typing import Union, List

__all__ = [ "ValidationIssue", "ValidationResults", "ERROR", "WARN", "REC", "ALL", "PROB" ]

REQ   = 1
ERROR = REQ  # synonym for REQ
WARN  = 2
REC   = 4
ALL   = 7
PROB  = 3
issuetypes = [ REQ, WARN, REC ]

type_labels = { REQ: "requirement", WARN: "warning", REC: "recommendation" }

class ValidationIssue(object):
    """
    an object capturing the outcome of a single validation check
    """

    def __init__(self, label: str, issuetype: int=ERROR, paths: Union[str, List[str]]=None,
                 passed: bool=True, comments: Union[str, List[str], None]=None):
        """
        :param str label:       a message key identifying the requirement that was checked
                                (e.g. "error.validation.accessconditions.required")
        :param int issuetype:   the severity of the check, one of ERROR, WARN, or REC
        :param str|list paths:  the path(s) within the target that the check applies to
        :param bool passed:     True if the target passed this check
        :param str|list comments:  context-specific explanations of the outcome
        """
        if issuetype not in issuetypes:
            raise ValueError("ValidationIssue: not a recognized issue type: "+str(issuetype))
        if isinstance(paths, str):
            paths = [paths]
        if isinstance(comments, str):
            comments = [comments]
        self.label = label
        self.type = issuetype
        self.paths = list(paths or [])
        self._passed = passed
        self._comm = [str(c) for c in (comments or [])]

    def add_comment(self, text):
        """
        attach a comment to this issue.
        """
        self._comm.append(str(text))

    @property
    def comments(self):
        return tuple(self._comm)

    def passed(self):
        """
        return True if this check is marked as having passed.
        """
        return self._passed

    def failed(self):
        return not self.passed()

    def __str__(self):
        status = (self.passed() and "PASSED") or type_labels[self.type].upper()
        out = "{0}: {1}".format(status, self.label)
        if self.paths:
            out += " [{0}]".format(", ".join(self.paths))
        if self._comm and self._comm[0]:
            out += " ({0})".format(self._comm[0])
        return out

    def to_json_obj(self):
        """
        return an OrderedDict that can be encoded into a JSON object node
        """
        return OrderedDict([
            ("message", self.label),
            ("type", type_labels[self.type]),
            ("paths", list(self.paths)),
            ("comments", list(self._comm))
        ])

class ValidationResults(object):
    """
    a container for collecting results from validation checks
    """
    REQ   = REQ
    ERROR = REQ
    WARN  = WARN
    REC   = REC
    ALL   = ALL
    PROB  = PROB

    def __init__(self, targetname: str, want: int=ALL):
        """
        initialize an empty set of results for a particular target

        :param str targetname:  the name (or identifier) of the target being validated
        :param int want:        the types of checks that should cause :py:meth:`ok` to return False
                                when they fail.
        """
        self.target = targetname
        self.want = want
        self.results = { REQ: [], WARN: [], REC: [] }

    def add(self, issue: ValidationIssue):
        self.results[issue.type].append(issue)

    def applied(self, issuetype=ALL) -> List[ValidationIssue]:
        """
        return a list of the checks of the requested types that were applied to the target.
        :param int issuetype:  a bit-wise and-ing of the desired issue types (default: ALL)
        """
        out = []
        for t in issuetypes:
            if t & issuetype:
                out += self.results[t]
        return out

    def failed(self, issuetype=ALL) -> List[ValidationIssue]:
        return [issue for issue in self.applied(issuetype) if issue.failed()]

    def count_failed(self, issuetype=ALL) -> int:
        return len(self.failed(issuetype))

    def passed(self, issuetype=ALL) -> List[ValidationIssue]:
        return [issue for issue in self.applied(issuetype) if issue.passed()]

    def ok(self) -> bool:
        """
        return True if none of the checks of the types specified by the constructor's want
        parameter failed.
        """
        return self.count_failed(self.want) == 0
