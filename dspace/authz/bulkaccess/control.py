"""
The bulk access control engine.

:py:class:`BulkAccessControl` applies the access conditions given in a
:py:class:`~dspace.authz.bulkaccess.model.BulkAccessControlInput` to all of the items found under a
list of target communities, collections, and items.  Item-level conditions become READ policies on
the items themselves; bitstream-level conditions become READ policies on the bitstreams in the
items' content ("ORIGINAL") bundles, on those bundles, and (via the media filter service) on the
bitstreams' derivatives.

A request is completely validated before any change is made.  Items are then processed one at a
time, a page at a time:  changes to each item are committed before moving on to the next, and a
failure while updating one item (or one bitstream) is recorded without stopping the run.
"""
import logging
from collections.abc import Mapping
from io import TextIOBase
from pathlib import Path
from typing import List, Union
from uuid import UUID

from dspace.base.config import get_bool
from .. import constants as const
from ..content import DSpaceObject, Item, Bundle, Bitstream
from ..context import Context
from ..exceptions import (BulkAccessControlException, StructuralError, AccessConditionValidationError,
                          InvalidAccessCondition, NotAuthorized)
from ..inherit import ItemPolicyService, APPEND_MODE_PARAM
from ..locator import DSpaceObjectUtils
from ..mediafilter import MediaFilterService, create_media_filter_service
from ..options import AccessConditionConfiguration, AccessConditionOption, ITEM_SCOPE, BITSTREAM_SCOPE
from ..policy import AuthorizeService
from ..search import SearchService, DEF_PAGE_SIZE
from ..utils.logging import blab
from .model import (BulkAccessControlInput, AccessCondition, AccessConditionItem, AccessConditionBitstream,
                    ADD_MODE, REPLACE_MODE, MODES)

SUCCESS = "SUCCESS"
VALIDATION_FAILURE = "VALIDATION_FAILURE"
PARTIAL_FAILURE = "PARTIAL_FAILURE"

class Outcome(object):
    """
    the result of processing one object during a bulk access control run
    """
    status = None

    def __init__(self, objid: str, objtype: str):
        self.id = objid
        self.type = objtype

    def __repr__(self):
        return "<%s %s %s>" % (self.status, self.type, self.id)

class Applied(Outcome):
    """
    the access conditions were applied to the object
    """
    status = "Applied"

class Skipped(Outcome):
    """
    the object was intentionally left unchanged
    """
    status = "Skipped"

    def __init__(self, objid: str, objtype: str, reason: str):
        super(Skipped, self).__init__(objid, objtype)
        self.reason = reason

class Failed(Outcome):
    """
    an error prevented the access conditions from being applied to the object
    """
    status = "Failed"

    def __init__(self, objid: str, objtype: str, error: Exception):
        super(Failed, self).__init__(objid, objtype)
        self.error = error


class BulkAccessControlResult(object):
    """
    a record of what happened during a bulk access control run
    """

    def __init__(self, log: logging.Logger=None):
        self.processed = 0
        self.outcomes = []
        self.messages = []
        self.errors = []
        self.fatal = None
        self._log = log

    @property
    def status(self) -> str:
        """
        one of SUCCESS, VALIDATION_FAILURE (nothing was changed), or PARTIAL_FAILURE (some objects
        could not be updated)
        """
        if self.fatal is not None:
            return VALIDATION_FAILURE
        if self.failures:
            return PARTIAL_FAILURE
        return SUCCESS

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS

    @property
    def failures(self) -> List[Failed]:
        return [o for o in self.outcomes if isinstance(o, Failed)]

    @property
    def applied(self) -> List[Applied]:
        return [o for o in self.outcomes if isinstance(o, Applied)]

    @property
    def skipped(self) -> List[Skipped]:
        return [o for o in self.outcomes if isinstance(o, Skipped)]

    def info(self, message: str):
        """
        record a message describing an action taken
        """
        self.messages.append(message)
        if self._log:
            self._log.info(message)

    def add(self, outcome: Outcome):
        self.outcomes.append(outcome)

    def set_fatal(self, ex: Exception):
        """
        record the error that prevented the run from making any changes
        """
        self.fatal = ex
        if isinstance(ex, AccessConditionValidationError):
            self.errors.extend(ex.errors)
        else:
            self.errors.append(str(ex))


class BulkAccessControl(object):
    """
    an engine for applying access conditions to many items and bitstreams at once.

    This class supports the following configuration parameters:

    ``access_conditions``
        (dict) the access condition options available for items and bitstreams (see
        :py:mod:`~dspace.authz.options`)
    ``page_size``
        (int) the number of items to retrieve from the search index at a time; default: 20
    ``inheritance_read_append_mode``
        (bool) if True, collection default policies are inherited in addition to explicitly set
        ones (see :py:mod:`~dspace.authz.inherit`)
    ``admin_group``
        (str) the group whose members may run bulk operations

    Parameters used by the media filter service (``filters``, ``filter_plugins``, ``public_filters``)
    are also recognized.
    """

    def __init__(self, config: Mapping=None, authz: AuthorizeService=None,
                 options: AccessConditionConfiguration=None, itempolicies: ItemPolicyService=None,
                 mediafilter: MediaFilterService=None, searcher: SearchService=None,
                 locator: DSpaceObjectUtils=None, log: logging.Logger=None):
        """
        create the engine.  Any collaborator not provided is created from the configuration.
        :param dict config:   the engine's configuration
        :param AuthorizeService authz:  the service for accessing policies
        :param AccessConditionConfiguration options:  the registry of access condition options
        :param ItemPolicyService itempolicies:  the service that computes inherited policies
        :param MediaFilterService mediafilter:  the service that updates derivative policies
        :param SearchService searcher:  the search service used to find target items
        :param DSpaceObjectUtils locator:  the locator for objects, bundles and bitstreams
        :param Logger log:    the Logger to use for messages
        """
        if config is None:
            config = {}
        self.cfg = config
        if not log:
            log = logging.getLogger("authz.bulkaccess")
        self.log = log

        if not authz:
            authz = AuthorizeService(config, log.getChild("policy"))
        self.authz = authz
        if not options:
            options = AccessConditionConfiguration.from_config(config.get('access_conditions', {}))
        self.options = options
        if not itempolicies:
            itempolicies = ItemPolicyService(authz, config, log.getChild("inherit"))
        self.itempolicies = itempolicies
        if not mediafilter:
            mediafilter = create_media_filter_service(config, authz, log.getChild("mediafilter"))
        self.mediafilter = mediafilter
        if not searcher:
            searcher = SearchService(log.getChild("search"))
        self.searcher = searcher
        if not locator:
            locator = DSpaceObjectUtils()
        self.locator = locator

    @property
    def page_size(self) -> int:
        return int(self.cfg.get('page_size', DEF_PAGE_SIZE))

    @property
    def append_mode(self) -> bool:
        return get_bool(self.cfg, APPEND_MODE_PARAM, False)

    def run(self, context: Context, uuids: List[str],
            source: Union[str, Path, TextIOBase, BulkAccessControlInput]) -> BulkAccessControlResult:
        """
        read a bulk access control request and apply it to the given targets.  Unlike
        :py:meth:`apply`, errors that prevent the request from being carried out are not raised;
        instead, they are captured in the returned result (whose status will be VALIDATION_FAILURE).
        :param Context context:  the context to work in
        :param list uuids:       the identifiers of the target communities, collections, and items
        :param source:           the request:  either a path to a JSON file, an open stream
                                 containing JSON, or an already parsed request
        """
        result = BulkAccessControlResult(self.log)
        try:
            if isinstance(source, BulkAccessControlInput):
                accessctl = source
            elif isinstance(source, (str, Path)):
                accessctl = BulkAccessControlInput.from_file(source)
            else:
                accessctl = BulkAccessControlInput.from_json(source)

            self.apply(context, uuids, accessctl, result)

        except (BulkAccessControlException, NotAuthorized) as ex:
            if isinstance(ex, AccessConditionValidationError):
                self.log.error(ex.format_errors())
            else:
                self.log.error("Bulk access control failed: %s", str(ex))
            context.rollback()
            result.set_fatal(ex)

        return result

    def apply(self, context: Context, uuids: List[str], accessctl: BulkAccessControlInput,
              result: BulkAccessControlResult=None) -> BulkAccessControlResult:
        """
        apply a bulk access control request to the given targets
        :param Context context:  the context to work in
        :param list uuids:       the identifiers of the target communities, collections, and items
        :param BulkAccessControlInput accessctl:  the request
        :param BulkAccessControlResult result:  the result object to record to; if not provided,
                                 a new one is created
        :return:  a record of the actions taken
        :raises NotAuthorized:   if the current user may not run bulk operations
        :raises StructuralError: if the request or target list is incomplete or badly formed
        :raises AccessConditionValidationError:  if the request uses unknown access conditions,
                                 disallowed dates, or unsupported constraints
        """
        if result is None:
            result = BulkAccessControlResult(self.log)

        if not self.is_authorized(context):
            raise NotAuthorized(context.current_user, "execute bulk access control")

        targets = self.validate(context, uuids, accessctl)
        self.update_items_and_bitstreams_policies(context, targets, accessctl, result)
        return result

    def is_authorized(self, context: Context) -> bool:
        """
        return True if the context's user may run bulk access control operations
        """
        return context.authorization_ignored or self.authz.is_admin(context)

    def validate(self, context: Context, uuids: List[str], accessctl: BulkAccessControlInput) -> List[DSpaceObject]:
        """
        check that the request can be carried out against the given targets.
        :return:  the target objects
        :raises StructuralError:  if the request or target list is incomplete or badly formed
        :raises AccessConditionValidationError:  if the request is invalid for other reasons
        """
        if not uuids:
            raise StructuralError("At least one target uuid must be provided")
        if accessctl is None or (accessctl.item is None and accessctl.bitstream is None):
            raise StructuralError("Item or Bitstream node must be provided")

        if accessctl.item is not None:
            self._validate_node(accessctl.item, ITEM_SCOPE)
        if accessctl.bitstream is not None:
            self._validate_node(accessctl.bitstream, BITSTREAM_SCOPE)

        errors = []
        targets = self._resolve_targets(context, uuids, errors)
        if accessctl.bitstream is not None:
            self._validate_constraint(context, uuids, accessctl.bitstream, errors)

        if accessctl.item is not None:
            for cond in accessctl.item.access_conditions:
                self._validate_access_condition(context, cond, ITEM_SCOPE, errors)
        if accessctl.bitstream is not None:
            for cond in accessctl.bitstream.access_conditions:
                self._validate_access_condition(context, cond, BITSTREAM_SCOPE, errors)

        if errors:
            raise AccessConditionValidationError(errors=errors)
        return targets

    def _resolve_targets(self, context, uuids, errors) -> List[DSpaceObject]:
        out = []
        for id in uuids:
            try:
                id = str(UUID(str(id)))
            except ValueError:
                errors.append("Invalid target uuid: %s" % id)
                continue
            obj = self.locator.find_object(context, id)
            if obj is None:
                errors.append("Unable to find DSpace object %s" % id)
            elif not self.locator.is_valid_target(obj):
                errors.append("Target %s is a %s, not a Community, Collection, or Item" %
                              (id, obj.type_name))
            else:
                out.append(obj)
        return out

    def _validate_node(self, node: AccessConditionItem, scope: str):
        if not node.mode:
            raise StructuralError("%s mode node must be provided" % scope)
        if node.mode not in MODES:
            raise StructuralError("wrong value for %s mode<%s>" % (scope, node.mode))
        if node.mode == ADD_MODE and not node.access_conditions:
            raise StructuralError("accessConditions of %s must be provided with mode<%s>" % (scope, ADD_MODE))

    def _validate_constraint(self, context: Context, uuids: List[str], node: AccessConditionBitstream,
                             errors: List[str]):
        # an unresolvable or unsupported single target has already been reported
        constraint = node.constraint_uuids
        if not constraint:
            return

        if len(uuids) > 1:
            errors.append("constraint isn't supported when multiple uuids are provided")
            return

        for id in constraint:
            if self.locator.find_object(context, id) is None:
                errors.append("Unable to find bitstream %s" % id)

    def _validate_access_condition(self, context: Context, cond: AccessCondition, scope: str,
                                   errors: List[str]):
        option = self.options.get_option(scope, cond.name)
        if not option:
            errors.append("Invalid %s access condition: <%s>" % (scope.capitalize(), cond.name))
            return
        try:
            option.validate_resource_policy(context, cond.name, cond.start_date, cond.end_date)
        except InvalidAccessCondition as ex:
            errors.append(str(ex))

    def update_items_and_bitstreams_policies(self, context: Context, targets: List[DSpaceObject],
                                             accessctl: BulkAccessControlInput,
                                             result: BulkAccessControlResult):
        """
        apply the (validated) request to all of the items found under the given targets, committing
        the changes to each item in turn
        """
        query = self.searcher.build_query(targets)
        self.log.debug("Searching for target items with query: %s", query)

        for found in self.searcher.cursor(context, query, self.page_size):
            item = context.reload_entity(found)
            if item is None:
                result.add(Skipped(found.id, found.type_name, "item no longer exists"))
                continue

            try:
                touched = 0
                if accessctl.item is not None:
                    self.update_item_policies(context, item, accessctl.item, result)
                    touched += 1
                if accessctl.bitstream is not None:
                    touched += self.update_bitstreams_policies(context, item, accessctl.bitstream, result)
                context.commit()

                if touched:
                    result.add(Applied(item.id, item.type_name))
                else:
                    result.add(Skipped(item.id, item.type_name, "no matching bitstreams"))

            except Exception as ex:
                self.log.exception("Failed to update policies of Item %s", item.id)
                result.errors.append("Cannot update policies on Item %s: %s" % (item.id, str(ex)))
                context.rollback()
                result.add(Failed(item.id, item.type_name, ex))

            finally:
                context.uncache_entity(item)
                result.processed += 1

    def update_item_policies(self, context: Context, item: Item, node: AccessConditionItem,
                             result: BulkAccessControlResult):
        """
        apply the item-level access conditions to an item
        """
        if node.mode == REPLACE_MODE:
            self._remove_read_policies(context, item)

        for cond in node.access_conditions:
            self._create_resource_policy(context, item, cond, self.options.get_item_option(cond.name))
        self.itempolicies.adjust_item_policies(context, item, item.owning_collection)

        self._log_info(result, node.access_conditions, node.mode, item)

    def update_bitstreams_policies(self, context: Context, item: Item, node: AccessConditionBitstream,
                                   result: BulkAccessControlResult) -> int:
        """
        apply the bitstream-level access conditions to the selected bitstreams in an item's content
        bundles, to the bundles themselves, and to the bitstreams' derivatives.
        :return:  the number of bitstreams that were selected
        """
        constraint = node.constraint_uuids
        count = 0
        for bundle in self.locator.select_bundles(item, [const.CONTENT_BUNDLE_NAME]):
            bitstreams = self.locator.select_bitstreams(bundle, constraint)
            if constraint and not bitstreams:
                continue
            self.update_bundle_policy(context, bundle, node.mode, constraint, node.access_conditions)

            for bitstream in bitstreams:
                count += 1
                try:
                    self.update_bitstream_policies(context, bitstream, item, node.mode,
                                                   node.access_conditions, result)
                except Exception as ex:
                    self.log.exception("Cannot update policies on bitstream %s", bitstream.id)
                    result.errors.append("Cannot update policies on bitstream %s: %s" % (bitstream.id, str(ex)))
                    result.add(Failed(bitstream.id, bitstream.type_name, ex))
        return count

    def update_bundle_policy(self, context: Context, bundle: Bundle, mode: str, constraint: List[str],
                             conditions: List[AccessCondition]):
        """
        apply bitstream-level access conditions to a bundle.  When replacing conditions for all of
        the bundle's bitstreams, the bundle's existing READ policies are removed first.  A
        condition is only added if the bundle has no READ policy with the same group and dates.
        """
        if mode == REPLACE_MODE and not constraint:
            self._remove_read_policies(context, bundle)

        for cond in conditions:
            option = self.options.get_bitstream_option(cond.name)
            if self._without_access_condition(context, bundle, cond, option):
                self._create_resource_policy(context, bundle, cond, option)
            else:
                blab(self.log, "Bundle %s already has access condition %s", bundle.id, str(cond))

    def _without_access_condition(self, context: Context, bundle: Bundle, cond: AccessCondition,
                                  option: AccessConditionOption) -> bool:
        group = self.authz.get_group(context, option.group_name)
        return not any(p.start_date == cond.start_date and p.end_date == cond.end_date
                       for p in self.authz.find(context, bundle, group, const.READ))

    def update_bitstream_policies(self, context: Context, bitstream: Bitstream, item: Item, mode: str,
                                  conditions: List[AccessCondition], result: BulkAccessControlResult):
        """
        apply bitstream-level access conditions to a bitstream and then update its derivatives
        """
        if mode == REPLACE_MODE:
            self._remove_read_policies(context, bitstream)

        for cond in conditions:
            self._create_resource_policy(context, bitstream, cond, self.options.get_bitstream_option(cond.name))
        self.itempolicies.adjust_bitstream_policies(context, item, item.owning_collection, bitstream)
        self.mediafilter.update_policies_of_derivative_bitstreams(context, item, bitstream)

        self._log_info(result, conditions, mode, bitstream)

    def _remove_read_policies(self, context: Context, dso: DSpaceObject):
        self.authz.remove_policies(context, dso, const.TYPE_CUSTOM, const.READ)
        self.authz.remove_policies(context, dso, const.TYPE_INHERITED, const.READ)

    def _create_resource_policy(self, context: Context, dso: DSpaceObject, cond: AccessCondition,
                                option: AccessConditionOption):
        option.create_resource_policy(context, self.authz, dso, cond.name, cond.description,
                                      cond.start_date, cond.end_date)

    def _log_info(self, result: BulkAccessControlResult, conditions: List[AccessCondition], mode: str,
                  dso: DSpaceObject):
        objname = "%s {%s}" % (dso.type_name, dso.id)

        if mode == REPLACE_MODE and not conditions:
            result.info("Cleaning %s policies" % objname)
            result.info("Inheriting policies from owning Collection in %s" % objname)
            return

        if mode == ADD_MODE:
            msg = "Adding %s policy with access conditions:" % objname
        else:
            msg = "Replacing %s policy to access conditions:" % objname
        result.info(msg + "{" + ", ".join(str(c) for c in conditions) + "}")

        if mode == REPLACE_MODE and self.append_mode:
            result.info("Inheriting policies from owning Collection in %s" % objname)
