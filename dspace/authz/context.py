"""
The unit of work within which repository objects are read and updated.
"""
import logging
from contextlib import contextmanager
from collections import OrderedDict
from collections.abc import Mapping

from .dbio.base import RepositoryClient
from .content import DSpaceObject, find_object, load_object

class Context(object):
    """
    a session with the repository database on behalf of a particular user.

    The context caches the objects that have been looked up through it (see :py:meth:`find`);
    long-running jobs should release objects they are done with via :py:meth:`uncache_entity` to
    keep memory use bounded.  Changes are made permanent with :py:meth:`commit` and undone (to the
    extent the backend allows) with :py:meth:`abort`.
    """

    def __init__(self, dbclient: RepositoryClient, user: str=None, config: Mapping=None,
                 log: logging.Logger=None):
        """
        create the context
        :param RepositoryClient dbclient:  the connection to the database
        :param str user:    the identifier of the eperson the work is being done for; None
                            indicates an anonymous user
        :param dict config: the configuration in effect for this context
        :param Logger log:  the Logger to use for messages
        """
        self._cli = dbclient
        self.current_user = user
        self._cfg = config or {}
        self._noauthz = 0
        self._cache = OrderedDict()
        self._valid = True
        if not log:
            log = logging.getLogger("authz.context")
        self.log = log

    @property
    def dbclient(self) -> RepositoryClient:
        return self._cli

    @property
    def config(self) -> Mapping:
        return self._cfg

    @property
    def is_valid(self) -> bool:
        """
        False if this context has been completed or aborted
        """
        return self._valid

    @property
    def authorization_ignored(self) -> bool:
        """
        True if authorization checks should currently be skipped
        """
        return self._noauthz > 0

    @contextmanager
    def ignore_authorization(self):
        """
        a context manager within which authorization checks are turned off
        """
        self._noauthz += 1
        try:
            yield self
        finally:
            self._noauthz -= 1

    def find(self, id, objtype: str=None) -> DSpaceObject:
        """
        return the repository object with the given identifier, or None if it does not exist.
        The object is cached in this context.
        """
        id = str(id)
        if id in self._cache and (not objtype or self._cache[id].type == objtype):
            return self._cache[id]
        out = find_object(self._cli, id, objtype)
        if out:
            self._cache[id] = out
        return out

    def reload_entity(self, obj: DSpaceObject) -> DSpaceObject:
        """
        return a fresh copy of the given object as it currently exists in the database, attaching
        it to this context's cache.
        """
        rec = self._cli.get(obj.coll, obj.id)
        if not rec:
            self._cache.pop(obj.id, None)
            return None
        out = load_object(rec, self._cli, obj.type)
        self._cache[out.id] = out
        return out

    def uncache_entity(self, obj: DSpaceObject):
        """
        release the given object from this context's cache
        """
        self._cache.pop(obj.id, None)

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def commit(self):
        """
        make permanent the changes made since the last commit
        """
        self._cli.commit()

    def abort(self):
        """
        undo the changes made since the last commit and end this context
        """
        self.rollback()
        self._valid = False

    def rollback(self):
        """
        undo the changes made since the last commit, clearing the object cache
        """
        self._cli.rollback()
        self._cache.clear()

    def complete(self):
        """
        commit outstanding changes and end this context
        """
        self.commit()
        self._cache.clear()
        self._valid = False
