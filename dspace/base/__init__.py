"""
Base classes and utilities shared by all of the ``dspace`` python subsystems.
"""
from typing import Union

__all__ = [ "DSpaceException", "SystemInfoMixin" ]

class SystemInfoMixin(object):
    """
    a mixin that provides identifying information about the system (and subsystem) that the
    inheriting class belongs to.
    """

    def __init__(self, sysname: str, sysabbrev: str, subsysname: str, subsysabbrev: str, version: str):
        self._sysn = sysname
        self._sysa = sysabbrev
        self._subsysn = subsysname
        self._subsysa = subsysabbrev
        self._ver = version

    @property
    def system_name(self) -> str:
        return self._sysn

    @property
    def system_abbrev(self) -> str:
        return self._sysa

    @property
    def subsystem_name(self) -> str:
        return self._subsysn

    @property
    def subsystem_abbrev(self) -> str:
        return self._subsysa

    @property
    def system_version(self) -> str:
        return self._ver

    def describe(self) -> str:
        """
        return a one-line description of this system, suitable for a log message
        """
        out = self.system_name
        if self.subsystem_name:
            out += ": " + self.subsystem_name
        return "{0} (version {1})".format(out, self.system_version)


class DSpaceException(Exception):
    """
    a general base class for exceptions raised by the ``dspace`` python subsystems.
    """

    def __init__(self, message: str=None, cause: Exception=None, sys: SystemInfoMixin=None):
        """
        create the exception
        :param str     message:  the description of the problem; if not provided, one is derived 
                                 from ``cause``.
        :param Exception cause:  an underlying exception that triggered this one (optional)
        :param SystemInfoMixin sys:  the system that the exception occurred in (optional)
        """
        if not message:
            if cause:
                message = str(cause)
            else:
                message = "Unknown DSpace system error"
        super(DSpaceException, self).__init__(message)
        self.cause = cause
        self.system = sys
