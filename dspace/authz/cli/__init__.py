"""
The ``authzadm`` command-line suite and the helpers shared by its subcommands.

The subcommands operate directly on the repository database configured via the ``dbio``
configuration parameter.
"""
import logging
from collections.abc import Mapping

from dspace.base.config import ConfigurationException
from ..context import Context
from .. import dbio

def get_user(args, config: Mapping) -> str:
    """
    return the identifier of the eperson the command should act as:  the value of ``--user`` if
    given; otherwise, the ``user`` configuration parameter (which may be None).
    """
    return getattr(args, 'user', None) or config.get('user')

def create_context(args, config: Mapping, log: logging.Logger=None) -> Context:
    """
    connect to the configured repository database and return a Context for the requested user
    :raises ConfigurationException:  if the ``dbio`` configuration is missing or incorrect
    """
    if not log:
        log = logging.getLogger("authz.cli")
    dbcfg = config.get('dbio')
    if not dbcfg:
        raise ConfigurationException("Missing required config parameter: dbio", param="dbio")

    factory = dbio.create_client_factory(dbcfg)
    return Context(factory.create_client(), get_user(args, config), config, log.getChild("context"))
