"""
Exceptions raised while managing resource policies.
"""
from typing import List

from . import AuthzException

__all__ = [ "DBIOException", "ObjectNotFound", "NotAuthorized", "InvalidAccessCondition",
            "BulkAccessControlException", "StructuralError", "AccessConditionValidationError" ]

class DBIOException(AuthzException):
    """
    an exception indicating a failure while interacting with the persistence layer
    """
    pass

class ObjectNotFound(AuthzException):
    """
    an exception indicating that a requested repository object does not exist
    """

    def __init__(self, id: str, objtype: str=None, message: str=None):
        """
        create the exception
        :param str      id:  the identifier of the object that could not be found
        :param str objtype:  the type of object that was requested (optional)
        :param str message:  the description of the error; if not given, one is constructed
        """
        if not message:
            message = "unable to find {0} {1}".format(objtype or "object", id)
        super(ObjectNotFound, self).__init__(message)
        self.id = id
        self.object_type = objtype

class NotAuthorized(AuthzException):
    """
    an exception indicating that the current user attempted an operation that they are not
    authorized to do
    """

    def __init__(self, who: str=None, op: str=None, message: str=None):
        """
        create the exception
        :param str who:     the identifier of the user who requested the operation
        :param str op:      a brief phrase identifying the unauthorized operation
        :param str message: the message describing why the exception was raised; if not given,
                            a default message is constructed from ``who`` and ``op``.
        """
        self.user_id = who
        self.operation = op
        if not message:
            if not op:
                op = "effect an unspecified action"
            message = "User "
            if who:
                message += who + " "
            message += "is not authorized to {}".format(op)
        super(NotAuthorized, self).__init__(message)

class InvalidAccessCondition(AuthzException):
    """
    an exception indicating that the parameters given for an access condition (typically its dates)
    are not allowed by the access condition option it refers to.
    """

    def __init__(self, name: str, message: str):
        super(InvalidAccessCondition, self).__init__(message)
        self.condition_name = name

class BulkAccessControlException(AuthzException):
    """
    a base exception for errors that prevent a bulk access control request from being carried out
    """
    pass

class StructuralError(BulkAccessControlException, ValueError):
    """
    an exception indicating that the bulk access control input (or the list of target objects) is
    missing required information or is otherwise badly formed.  No changes are made when this is
    raised.
    """
    pass

class AccessConditionValidationError(BulkAccessControlException):
    """
    an exception indicating that the bulk access control input refers to unknown access conditions,
    gives illegal dates, or uses constraints in an unsupported way.  No changes are made when this
    is raised.

    The ``errors`` property contains a list of messages, each describing a problem found.
    """

    def __init__(self, message: str=None, errors: List[str]=None):
        if errors:
            if not message:
                if len(errors) == 1:
                    message = errors[0]
                else:
                    message = "Encountered %d validation errors, including: %s" % (len(errors), errors[0])
        elif message:
            errors = [message]
        else:
            message = "Unknown validation errors encountered"
            errors = []
        super(AccessConditionValidationError, self).__init__(message)
        self.errors = errors

    def format_errors(self):
        """
        format into a string the listing of the validation errors encountered.  The returned string
        will have embedded newline characters for multi-line text-based display.
        """
        if not self.errors:
            return str(self)
        return "Validation errors encountered:\n  * " + "\n  * ".join([str(e) for e in self.errors])
