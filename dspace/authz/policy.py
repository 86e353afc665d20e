"""
Resource policies and the service for querying and updating them.

A resource policy grants an action (e.g. READ) on a repository object to either a group or a
particular person (eperson), optionally restricted to a window of dates.  Each policy also carries a
type that records its provenance--for instance, ``TYPE_CUSTOM`` for policies set explicitly by an
administrator and ``TYPE_INHERITED`` for those propagated from a parent collection.

The :py:class:`AuthorizeService` is the store interface used by the policy propagation engines; all
of its operations act within a :py:class:`~dspace.authz.context.Context`.
"""
import logging
from collections.abc import Mapping, MutableMapping
from datetime import date
from typing import List, Union, Tuple

from . import constants as const
from .content import DSpaceObject, Group
from .context import Context
from .exceptions import NotAuthorized, ObjectNotFound
from .utils.dates import parse_date, format_date, today

__all__ = [ "ResourcePolicy", "AuthorizeService" ]

GroupRef = Union[Group, str, None]

def _group_id(group: GroupRef) -> str:
    if isinstance(group, Group):
        return group.id
    return group

class ResourcePolicy(object):
    """
    a grant of an action on a repository object
    """

    def __init__(self, recdata: MutableMapping):
        if not recdata.get('id'):
            raise ValueError("Policy data is missing its 'id' property")
        if not recdata.get('dso'):
            raise ValueError("Policy data is missing its 'dso' property")
        self._data = recdata
        for prop in "action group eperson start_date end_date rptype rpname rpdescription".split():
            self._data.setdefault(prop, None)

    @property
    def id(self) -> str:
        return self._data['id']

    @property
    def dso(self) -> str:
        """
        the identifier of the object this policy applies to
        """
        return self._data['dso']

    @property
    def action(self) -> str:
        return self._data['action']

    @property
    def group(self) -> str:
        """
        the identifier of the group this policy grants access to, or None
        """
        return self._data['group']

    @property
    def eperson(self) -> str:
        """
        the identifier of the person this policy grants access to, or None
        """
        return self._data['eperson']

    @property
    def start_date(self) -> date:
        return parse_date(self._data['start_date'])

    @property
    def end_date(self) -> date:
        return parse_date(self._data['end_date'])

    @property
    def rptype(self) -> str:
        return self._data['rptype']

    @property
    def name(self) -> str:
        return self._data['rpname']

    @property
    def description(self) -> str:
        return self._data['rpdescription']

    def is_date_valid(self, on: date=None) -> bool:
        """
        return True if this policy is in effect on the given date (default: today)
        """
        if not on:
            on = today()
        if self.start_date and on < self.start_date:
            return False
        if self.end_date and on > self.end_date:
            return False
        return True

    def equivalence_key(self) -> Tuple:
        """
        return the values that determine whether two policies grant the same access:  the group,
        the eperson, the action, and the start and end dates.  The policy's name, description, type,
        and target object are not part of the key.
        """
        return (self.group, self.eperson, self.action, self.start_date, self.end_date)

    def grants_same_access(self, other: "ResourcePolicy") -> bool:
        return self.equivalence_key() == other.equivalence_key()

    def to_dict(self) -> Mapping:
        return dict(self._data)

    def __repr__(self):
        who = self.group and "group="+self.group or "eperson="+str(self.eperson)
        return "<ResourcePolicy {0} on {1}: {2} {3} [{4}, {5}] {6}>".format(
            self.id, self.dso, self.action, who, format_date(self.start_date),
            format_date(self.end_date), self.rptype)


class AuthorizeService(object):
    """
    a service for querying and updating the resource policies attached to repository objects and
    for checking a user's authorization to carry out actions on them.

    This service supports the following configuration parameters:

    ``admin_group``
        (str) the name of the group whose members are administrators; default: "Administrator"
    """

    def __init__(self, config: Mapping=None, log: logging.Logger=None):
        if config is None:
            config = {}
        self.cfg = config
        if not log:
            log = logging.getLogger("authz.policy")
        self.log = log

    def _wrap(self, recs) -> List[ResourcePolicy]:
        return [ResourcePolicy(r) for r in recs]

    def get_policies(self, context: Context, dso: DSpaceObject) -> List[ResourcePolicy]:
        """
        return all of the policies attached to the given object
        """
        return self._wrap(context.dbclient.select(const.POLICIES_COLL, dso=dso.id))

    def get_policies_action_filter(self, context: Context, dso: DSpaceObject,
                                   action: str) -> List[ResourcePolicy]:
        """
        return the policies attached to the given object that grant the given action
        """
        return self._wrap(context.dbclient.select(const.POLICIES_COLL, dso=dso.id, action=action))

    def find_policies_by_type(self, context: Context, dso: DSpaceObject, rptype: str) -> List[ResourcePolicy]:
        """
        return the policies attached to the given object having the given policy type
        """
        return self._wrap(context.dbclient.select(const.POLICIES_COLL, dso=dso.id, rptype=rptype))

    def find(self, context: Context, dso: DSpaceObject, group: GroupRef, action: str) -> List[ResourcePolicy]:
        """
        return the policies attached to the given object that grant the given action to the given
        group.
        """
        return self._wrap(context.dbclient.select(const.POLICIES_COLL, dso=dso.id,
                                                  group=_group_id(group), action=action))

    def find_by_type_group_action(self, context: Context, dso: DSpaceObject, group: GroupRef,
                                  action: str) -> ResourcePolicy:
        """
        return the first policy found that grants the given action on the given object to the given
        group, or None if there is no such policy.
        """
        found = self.find(context, dso, group, action)
        return found[0] if found else None

    def has_equivalent_policy(self, context: Context, dso: DSpaceObject, policy: ResourcePolicy) -> bool:
        """
        return True if the given object already has a policy granting the same access as the given
        one (see :py:meth:`ResourcePolicy.equivalence_key`)
        """
        return any(p.grants_same_access(policy)
                   for p in self.find(context, dso, policy.group, policy.action))

    def create_policy(self, context: Context, dso: DSpaceObject, action: str, group: GroupRef=None,
                      eperson: str=None, rptype: str=None, name: str=None, description: str=None,
                      start_date=None, end_date=None) -> ResourcePolicy:
        """
        create and save a new policy attached to the given object
        :param Context context:  the current context
        :param DSpaceObject dso: the object to attach the policy to
        :param str action:       the action to grant
        :param Group|str group:  the group (or its identifier) to grant access to
        :param str eperson:      the identifier of the person to grant access to
        :param str rptype:       the policy type (e.g. TYPE_CUSTOM)
        :param str name:         the name for the policy (usually the name of an access condition)
        :param str description:  a description for the policy
        :param start_date:       the date the policy goes into effect (date or ISO string)
        :param end_date:         the last date the policy is in effect (date or ISO string)
        """
        if not group and not eperson:
            raise ValueError("create_policy(): a group or an eperson must be specified")
        if action not in const.ACTIONS:
            raise ValueError("create_policy(): unrecognized action: "+str(action))
        data = {
            "id": context.dbclient.new_id(),
            "dso": dso.id,
            "dso_type": dso.type,
            "action": action,
            "group": _group_id(group),
            "eperson": eperson,
            "start_date": format_date(start_date),
            "end_date": format_date(end_date),
            "rptype": rptype,
            "rpname": name,
            "rpdescription": description
        }
        context.dbclient.upsert(const.POLICIES_COLL, data)
        return ResourcePolicy(data)

    def add_policy(self, context: Context, dso: DSpaceObject, action: str, group: GroupRef,
                   rptype: str=None) -> ResourcePolicy:
        """
        grant the given action on the given object to the given group
        """
        return self.create_policy(context, dso, action, group, rptype=rptype)

    def add_policies(self, context: Context, policies: List[ResourcePolicy], dest: DSpaceObject):
        """
        attach copies of the given policies to the destination object
        """
        for policy in policies:
            data = policy.to_dict()
            data['id'] = context.dbclient.new_id()
            data['dso'] = dest.id
            data['dso_type'] = dest.type
            context.dbclient.upsert(const.POLICIES_COLL, data)

    def remove_policies(self, context: Context, dso: DSpaceObject, rptype: str, action: str=None) -> int:
        """
        remove the policies of the given type (and, optionally, action) from the given object
        :return:  the number of policies removed
        """
        cnsts = { "dso": dso.id, "rptype": rptype }
        if action:
            cnsts['action'] = action
        return context.dbclient.delete_where(const.POLICIES_COLL, **cnsts)

    def remove_all_policies(self, context: Context, dso: DSpaceObject) -> int:
        """
        remove all the policies attached to the given object
        :return:  the number of policies removed
        """
        return context.dbclient.delete_where(const.POLICIES_COLL, dso=dso.id)

    def remove_policies_not_of_type(self, context: Context, dso: DSpaceObject, rptype: str) -> int:
        """
        remove all policies attached to the given object that are not of the given type
        """
        count = 0
        for policy in self.get_policies(context, dso):
            if policy.rptype != rptype:
                context.dbclient.delete(const.POLICIES_COLL, policy.id)
                count += 1
        return count

    def replace_all_policies(self, context: Context, source: DSpaceObject, dest: DSpaceObject):
        """
        replace all of the policies attached to the destination object with copies of those
        attached to the source object
        """
        self.remove_all_policies(context, dest)
        self.add_policies(context, self.get_policies(context, source), dest)

    def get_group(self, context: Context, name: str) -> Group:
        """
        return the group with the given name
        :raises ObjectNotFound:  if no such group exists
        """
        for rec in context.dbclient.select(const.GROUPS_COLL, name=name):
            return Group(rec, context.dbclient)
        raise ObjectNotFound(name, "group")

    def get_anonymous_group(self, context: Context) -> Group:
        return self.get_group(context, const.ANONYMOUS_GROUP)

    def groups_for(self, context: Context, who: str) -> List[str]:
        """
        return the identifiers of the groups the given person is a member of, including the
        anonymous group, of which all users are implicitly members.
        """
        out = []
        for rec in context.dbclient.select(const.GROUPS_COLL, name=const.ANONYMOUS_GROUP):
            out.append(rec['id'])
        if who:
            out.extend(r['id'] for r in context.dbclient.select_containing(const.GROUPS_COLL, 'members', who)
                               if r['id'] not in out)
        return out

    def is_admin(self, context: Context, who: str=None) -> bool:
        """
        return True if the given person (default: the context's current user) is a member of the
        administrators group
        """
        if not who:
            who = context.current_user
        if not who:
            return False
        adminname = self.cfg.get('admin_group', const.ADMIN_GROUP)
        for rec in context.dbclient.select(const.GROUPS_COLL, name=adminname):
            if who in rec.get('members', []):
                return True
        return False

    def authorized(self, context: Context, dso: DSpaceObject, action: str, who: str=None) -> bool:
        """
        return True if the given person (default: the context's current user) is allowed to carry
        out the given action on the given object.  Administrators are allowed all actions, as are
        all users when the context is ignoring authorization.
        """
        if context.authorization_ignored:
            return True
        if not who:
            who = context.current_user
        if self.is_admin(context, who):
            return True

        groups = set(self.groups_for(context, who))
        for policy in self.get_policies_action_filter(context, dso, action):
            if not policy.is_date_valid():
                continue
            if (who and policy.eperson == who) or (policy.group and policy.group in groups):
                return True
        return False

    def authorize_action(self, context: Context, dso: DSpaceObject, action: str):
        """
        ensure that the current user is allowed to carry out the given action on the given object
        :raises NotAuthorized:  if the user is not allowed
        """
        if not self.authorized(context, dso, action):
            raise NotAuthorized(context.current_user, "{0} {1} {2}".format(action, dso.type_name, dso.id))
