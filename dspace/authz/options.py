"""
Access condition options:  the registered templates from which access-condition policies are made.

An option has a name (e.g. "openaccess", "embargo", "administrator") and a group that the policies
it creates grant READ access to.  An option also determines whether a start date and/or an end date
may be given when it is applied and how far into the future those dates may be.  Options are
registered in configuration separately for items and for bitstreams:

.. code-block:: yaml

   access_conditions:
     item:
       - name: openaccess
         group_name: Anonymous
       - name: embargo
         group_name: Anonymous
         has_start_date: true
         start_date_limit: "+36MONTHS"
     bitstream:
       - name: lease
         group_name: Anonymous
         has_end_date: true
         end_date_limit: "+6MONTHS"
"""
from collections import OrderedDict
from collections.abc import Mapping
from typing import List

from dspace.base.config import ConfigurationException, get_bool
from . import constants as const
from .content import DSpaceObject
from .context import Context
from .exceptions import InvalidAccessCondition
from .policy import AuthorizeService, ResourcePolicy
from .utils.dates import parse_date, resolve_limit, format_date

ITEM_SCOPE = "item"
BITSTREAM_SCOPE = "bitstream"

class AccessConditionOption(object):
    """
    a named template for creating a READ policy for a group, with rules governing the dates that
    can be attached to it.
    """

    def __init__(self, name: str, group_name: str, has_start_date: bool=False, has_end_date: bool=False,
                 start_date_limit: str=None, end_date_limit: str=None):
        """
        create the option
        :param str name:              the option's name, which becomes the name of the policies it creates
        :param str group_name:        the name of the group that policies should grant access to
        :param bool has_start_date:   True if a start date may be given with this option
        :param bool has_end_date:     True if an end date may be given with this option
        :param str start_date_limit:  the latest allowed start date, relative to today (e.g. "+36MONTHS")
        :param str end_date_limit:    the latest allowed end date, relative to today
        """
        if not name:
            raise ValueError("AccessConditionOption: name is required")
        if not group_name:
            raise ValueError("AccessConditionOption %s: group_name is required" % name)
        self.name = name
        self.group_name = group_name
        self.has_start_date = has_start_date
        self.has_end_date = has_end_date
        self.start_date_limit = start_date_limit
        self.end_date_limit = end_date_limit

        # fail on bad limits now rather than when used
        resolve_limit(start_date_limit)
        resolve_limit(end_date_limit)

    @classmethod
    def from_config(cls, config: Mapping) -> "AccessConditionOption":
        """
        create an option from its configuration description
        :raises ConfigurationException:  if the description is incomplete or invalid
        """
        try:
            return cls(config.get('name'), config.get('group_name'),
                       get_bool(config, 'has_start_date', False), get_bool(config, 'has_end_date', False),
                       config.get('start_date_limit'), config.get('end_date_limit'))
        except ValueError as ex:
            raise ConfigurationException("Bad access condition option: " + str(ex), ex,
                                         param="access_conditions")

    def validate_resource_policy(self, context: Context, name: str, start_date=None, end_date=None):
        """
        check that the given dates can be used with this option
        :param Context context:  the current context
        :param str name:         the name of the access condition being applied
        :param start_date:       the requested start date (a date or ISO string) or None
        :param end_date:         the requested end date (a date or ISO string) or None
        :raises InvalidAccessCondition:  if the dates are not allowed
        """
        try:
            start_date = parse_date(start_date)
            end_date = parse_date(end_date)
        except ValueError as ex:
            raise InvalidAccessCondition(name, "Access condition %s: bad date: %s" % (name, str(ex)))

        if start_date and not self.has_start_date:
            raise InvalidAccessCondition(name, "The access condition %s does not support a start date"
                                               % name)
        if end_date and not self.has_end_date:
            raise InvalidAccessCondition(name, "The access condition %s does not support an end date"
                                               % name)

        if start_date and self.start_date_limit:
            limit = resolve_limit(self.start_date_limit)
            if start_date > limit:
                raise InvalidAccessCondition(name, "The start date of access condition %s should be "
                                                   "no later than %s" % (name, format_date(limit)))
        if end_date and self.end_date_limit:
            limit = resolve_limit(self.end_date_limit)
            if end_date > limit:
                raise InvalidAccessCondition(name, "The end date of access condition %s should be "
                                                   "no later than %s" % (name, format_date(limit)))

        if start_date and end_date and start_date > end_date:
            raise InvalidAccessCondition(name, "The start date of access condition %s is after its "
                                               "end date" % name)

    def create_resource_policy(self, context: Context, authz: AuthorizeService, dso: DSpaceObject,
                               name: str, description: str=None, start_date=None,
                               end_date=None) -> ResourcePolicy:
        """
        create a CUSTOM READ policy on the given object from this option.  The current user must
        be allowed to administer the object.
        :param Context context:        the current context
        :param AuthorizeService authz: the service to create the policy with
        :param DSpaceObject dso:       the object to attach the policy to
        :param str name:               the name of the access condition (and policy)
        :param str description:        a description for the policy
        :raises InvalidAccessCondition:  if the dates are not allowed by this option
        :raises NotAuthorized:           if the user may not change the object's policies
        :raises ObjectNotFound:          if this option's group does not exist
        """
        self.validate_resource_policy(context, name, start_date, end_date)
        authz.authorize_action(context, dso, const.ADMIN)

        group = authz.get_group(context, self.group_name)
        return authz.create_policy(context, dso, const.READ, group, rptype=const.TYPE_CUSTOM,
                                   name=name, description=description,
                                   start_date=parse_date(start_date), end_date=parse_date(end_date))

    def __repr__(self):
        return "<AccessConditionOption %s: group=%s>" % (self.name, self.group_name)


class AccessConditionConfiguration(object):
    """
    the registry of access condition options available for items and for bitstreams
    """

    def __init__(self, item_options: List[AccessConditionOption]=None,
                 bitstream_options: List[AccessConditionOption]=None):
        self._opts = {
            ITEM_SCOPE: OrderedDict((o.name, o) for o in (item_options or [])),
            BITSTREAM_SCOPE: OrderedDict((o.name, o) for o in (bitstream_options or []))
        }

    @classmethod
    def from_config(cls, config: Mapping) -> "AccessConditionConfiguration":
        """
        create the registry from the ``access_conditions`` configuration parameter
        """
        if config is None:
            config = {}
        if not isinstance(config, Mapping):
            raise ConfigurationException("access_conditions: not a dictionary", param="access_conditions")

        out = {}
        for scope in (ITEM_SCOPE, BITSTREAM_SCOPE):
            opts = config.get(scope, [])
            if not isinstance(opts, (list, tuple)):
                raise ConfigurationException("access_conditions.%s: not a list" % scope,
                                             param="access_conditions")
            out[scope] = [AccessConditionOption.from_config(o) for o in opts]
        return cls(out[ITEM_SCOPE], out[BITSTREAM_SCOPE])

    def get_option(self, scope: str, name: str) -> AccessConditionOption:
        """
        return the option with the given name registered for the given scope, or None if it is not
        registered.
        :param str scope:  either "item" or "bitstream"
        """
        if scope not in self._opts:
            raise ValueError("Unrecognized access condition scope: "+str(scope))
        return self._opts[scope].get(name)

    def get_item_option(self, name: str) -> AccessConditionOption:
        return self.get_option(ITEM_SCOPE, name)

    def get_bitstream_option(self, name: str) -> AccessConditionOption:
        return self.get_option(BITSTREAM_SCOPE, name)

    @property
    def item_options(self) -> List[AccessConditionOption]:
        return list(self._opts[ITEM_SCOPE].values())

    @property
    def bitstream_options(self) -> List[AccessConditionOption]:
        return list(self._opts[BITSTREAM_SCOPE].values())
