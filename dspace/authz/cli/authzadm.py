"""
authzadm command-line program for executing administrative operations on repository access
policies.  This suite of commands operates directly on the repository database.
"""
import logging, os, sys

from dspace.base.config import ConfigurationException
from ..utils import cli
from . import bulkaccess, derivpol

description = \
"""execute administrative operations on repository access policies

The subcommands operate directly on the repository database configured via the "dbio" parameter.
Operations are carried out as the eperson given via --user.
"""
epilog = None
default_prog_name = "authzadm"
default_conf_file = os.environ.get("AUTHZADM_CONFIG", os.path.join("etc", "authzadm_conf.yml"))

def main(cmdname, args):
    """
    a function that executes the ``authzadm`` command-line tool.
    """
    if not cmdname:
        cmdname = default_prog_name

    argparser = cli.define_prog_opts(cmdname, description, epilog)
    authzadm = cli.CLISuite(cmdname, default_conf_file, argparser)

    authzadm.load_subcommand(bulkaccess)
    authzadm.load_subcommand(derivpol)

    authzadm.execute(args)
    return args

if __name__ == "__main__":
    prog = default_prog_name
    try:
        prog = os.path.splitext(os.path.basename(sys.argv[0]))[0]
        main(prog, sys.argv[1:])
        sys.exit(0)
    except cli.CommandFailure as ex:
        logging.getLogger(f"{prog} {ex.cmd}").critical(str(ex))
        sys.exit(ex.stat)
    except ConfigurationException as ex:
        logging.getLogger(prog).critical("Config error: "+str(ex))
        sys.exit(6)
    except Exception as ex:
        logging.getLogger(prog).exception(ex)
        sys.exit(1)
