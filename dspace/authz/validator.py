"""
A submission validator that checks that an access condition has been applied to an item.
"""
import logging
from collections.abc import Mapping
from typing import List

from dspace.base.config import get_bool
from .content import Item
from .context import Context
from .policy import AuthorizeService
from .utils.validate import ValidationIssue, ValidationResults, ERROR

ACCESS_CONDITIONS_REQUIRED = "error.validation.accessconditions.required"
SECTIONS_PATH = "sections"
DEF_STEP_ID = "defaultAC"

class AccessConditionValidator(object):
    """
    a validator for the access-condition step of a submission.  If the step is configured as
    requiring an access condition, the item must carry a policy named after one of the step's
    access condition options.

    This validator supports the following configuration parameters:

    ``required``
        (bool) True if an access condition must be applied before the item may be submitted
    ``options``
        (list of str) the names of the access condition options offered by the step
    """

    def __init__(self, authz: AuthorizeService, config: Mapping=None, step_id: str=DEF_STEP_ID,
                 log: logging.Logger=None):
        self.authz = authz
        if config is None:
            config = {}
        self.cfg = config
        self.step_id = step_id
        if not log:
            log = logging.getLogger("authz.validator")
        self.log = log

    @property
    def required(self) -> bool:
        return get_bool(self.cfg, 'required', False)

    @property
    def option_names(self) -> List[str]:
        return list(self.cfg.get('options') or [])

    def validate(self, context: Context, item: Item, results: ValidationResults=None) -> ValidationResults:
        """
        check the given item's access conditions
        :param Context context:  the current context
        :param Item item:        the item being submitted
        :param ValidationResults results:  the results object to add issues to; if not provided,
                                 one is created
        """
        if results is None:
            results = ValidationResults(item.id)

        if not self.required:
            return results

        present = self.is_access_condition_present(context, item)
        issue = ValidationIssue(ACCESS_CONDITIONS_REQUIRED, ERROR, "/%s/%s" % (SECTIONS_PATH, self.step_id),
                                present)
        if not present:
            issue.add_comment("Item %s has no access condition among: %s" %
                              (item.id, ", ".join(self.option_names)))
        results.add(issue)
        return results

    def is_access_condition_present(self, context: Context, item: Item) -> bool:
        """
        return True if the item has a policy named after one of the configured options
        """
        names = self.option_names
        return any(p.name in names for p in self.authz.get_policies(context, item))
