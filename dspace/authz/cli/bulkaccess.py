"""
CLI command that applies a bulk access control request to the items and bitstreams under a set of
communities, collections, and items.
"""
import logging, argparse, os
from logging import Logger
from collections.abc import Mapping

from dspace.base.config import ConfigurationException
from ..exceptions import AccessConditionValidationError, NotAuthorized
from ..bulkaccess import BulkAccessControl, PARTIAL_FAILURE
from ..utils.cli import CommandFailure
from . import create_context

default_name = "bulk-access"
help = "apply access conditions to many items and bitstreams at once"
description = \
"""Apply the access conditions given in a JSON file to all of the items (and their bitstreams)
found within the target communities, collections, and items.  The request is checked in full
before any change is made; if it is invalid, nothing is changed.

The user given via --user (or the "user" configuration parameter) must be a member of the
administrator group.
"""

def load_into(subparser: argparse.ArgumentParser, current_dests: list=None, as_cmd: str=None):
    """
    load this command into a CLI by defining the command's arguments and options.
    :param argparser.ArgumentParser subparser:  the argument parser instance to define this command's
                                                interface into it
    :param list current_dests:  a list of destination names for parameters that have already been
                                defined
    :param str as_cmd:  the subcommand name assigned to the action provided by this module
    :rtype: None
    """
    p = subparser
    p.description = description
    p.add_argument("-f", "--file", type=str, dest="file", metavar="FILE", required=True,
                   help="the JSON file containing the access conditions to apply")
    p.add_argument("-u", "--uuid", type=str, dest="uuids", metavar="UUID", action="append",
                   required=True,
                   help="the identifier of a target community, collection, or item; repeat to "+
                        "give multiple targets")
    return None

def execute(args, config: Mapping=None, log: Logger=None):
    """
    execute this command: apply the requested access conditions
    """
    if not log:
        log = logging.getLogger(default_name)
    if not config:
        config = {}

    if isinstance(args, list):
        # cmd-line arguments not parsed yet
        p = argparse.ArgumentParser()
        load_into(p)
        args = p.parse_args(args)
    cmd = getattr(args, 'cmd', None) or default_name

    path = args.file
    if not os.path.isabs(path) and config.get('working_dir'):
        path = os.path.join(config['working_dir'], path)

    try:
        context = create_context(args, config, log)
        bac = BulkAccessControl(config, log=log.getChild("bulkaccess"))
    except ConfigurationException as ex:
        raise CommandFailure(cmd, "Config error: "+str(ex), 6, ex) from ex

    result = bac.run(context, args.uuids, path)

    if result.fatal:
        if isinstance(result.fatal, NotAuthorized):
            raise CommandFailure(cmd, str(result.fatal), 9, result.fatal)
        if isinstance(result.fatal, AccessConditionValidationError):
            raise CommandFailure(cmd, result.fatal.format_errors(), 3, result.fatal)
        raise CommandFailure(cmd, str(result.fatal), 3, result.fatal)

    context.complete()
    log.info("Processed %d item(s): %d updated, %d skipped, %d failed", result.processed,
             len(result.applied), len(result.skipped), len(result.failures))

    if result.status == PARTIAL_FAILURE:
        raise CommandFailure(cmd, "%d object(s) could not be updated" % len(result.failures), 11)
    return result
