"""
authz:  resource-policy propagation support for a DSpace-style digital repository.

A repository holds a graph of objects--communities, collections, items, bundles, and bitstreams--each
of which is protected by a set of *resource policies*:  grants of an action (e.g. READ) to a group or
person, optionally bounded by a start and end date.  This package provides the engines that keep
those policies consistent when they are changed in bulk or when new derivative content is generated:

  *  :py:mod:`~dspace.authz.bulkaccess` applies access conditions, described in a JSON input document,
     to all the items (and/or their bitstreams) found under a set of target communities, collections,
     or items.
  *  :py:mod:`~dspace.authz.mediafilter` propagates the policies of a source bitstream onto the
     derivative bitstreams (extracted text, thumbnails, etc.) generated from it by format filters.

These engines operate over a persistence layer (:py:mod:`~dspace.authz.dbio`), accessed through a
:py:class:`~dspace.authz.context.Context` unit-of-work, and a simple search index
(:py:mod:`~dspace.authz.search`) used to enumerate target items.
"""
from dspace.base import DSpaceException, SystemInfoMixin

try:
    from .version import __version__
except ImportError:
    __version__ = "(unset)"

_AUTHZSYSNAME = "DSpace"
_AUTHZSYSABBREV = "DS"

class AuthzSystem(SystemInfoMixin):
    """
    A SystemInfoMixin representing the policy-propagation subsystem
    """
    def __init__(self, subsysname="Authorization Policy Management", subsysabbrev="authz"):
        super(AuthzSystem, self).__init__(_AUTHZSYSNAME, _AUTHZSYSABBREV,
                                          subsysname, subsysabbrev, __version__)

system = AuthzSystem()

class AuthzException(DSpaceException):
    """
    A general base class for exceptions that occur while managing resource policies
    """
    pass
