"""
CLI command that brings the policies of a bitstream's derivatives (thumbnails, extracted text,
etc.) into line with those of the bitstream.
"""
import logging, argparse
from logging import Logger
from collections.abc import Mapping

from dspace.base.config import ConfigurationException
from .. import constants as const
from ..exceptions import NotAuthorized
from ..policy import AuthorizeService
from ..mediafilter import create_media_filter_service
from ..utils.cli import CommandFailure
from . import create_context

default_name = "derive-policies"
help = "update the policies of the derivatives of a bitstream"
description = \
"""Update the policies of the derivative bitstreams created from a given bitstream by the
configured format filters (see the filter_plugins configuration parameter).  Derivatives made by
filters listed in public_filters are made readable by everyone; all others receive copies of the
source bitstream's policies.
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
    p.add_argument("item", metavar="ITEM", type=str,
                   help="the identifier of the item containing the bitstream")
    p.add_argument("bitstream", metavar="BITSTREAM", type=str,
                   help="the identifier of the bitstream whose derivatives should be updated")
    return None

def execute(args, config: Mapping=None, log: Logger=None):
    """
    execute this command: update the derivative policies of the requested bitstream
    """
    if not log:
        log = logging.getLogger(default_name)
    if not config:
        config = {}

    if isinstance(args, list):
        p = argparse.ArgumentParser()
        load_into(p)
        args = p.parse_args(args)
    cmd = getattr(args, 'cmd', None) or default_name

    try:
        context = create_context(args, config, log)
        authz = AuthorizeService(config, log.getChild("policy"))
        mfsvc = create_media_filter_service(config, authz, log.getChild("mediafilter"))
    except ConfigurationException as ex:
        raise CommandFailure(cmd, "Config error: "+str(ex), 6, ex) from ex

    item = context.find(args.item, const.ITEM)
    if not item:
        raise CommandFailure(cmd, f"{args.item}: item not found", 3)
    source = context.find(args.bitstream, const.BITSTREAM)
    if not source:
        raise CommandFailure(cmd, f"{args.bitstream}: bitstream not found", 3)

    try:
        authz.authorize_action(context, source, const.ADMIN)
    except NotAuthorized as ex:
        raise CommandFailure(cmd, str(ex), 9, ex) from ex

    try:
        mfsvc.update_policies_of_derivative_bitstreams(context, item, source)
    except Exception as ex:
        context.abort()
        log.exception(ex)
        raise CommandFailure(cmd, f"{args.bitstream}: failed to update derivative policies: "+str(ex),
                             1, ex) from ex

    context.complete()
    log.info("Updated policies of derivatives of bitstream %s", source.id)
