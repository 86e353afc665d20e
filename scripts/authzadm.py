#! /usr/bin/env python3
"""
Administer repository access policies:  apply bulk access conditions and refresh the policies of
derivative bitstreams.

Execute this script with the -h option to display the list of subcommands and options.
"""
# authzadm [-h] [-c CONFFILE] [-U EPERSONID] {bulk-access,derive-policies} ...
import sys, os, logging, traceback as tb
from dspace.base.config import ConfigurationException
from dspace.authz.cli import authzadm
from dspace.authz.utils.cli import CommandFailure

prog = os.path.basename(sys.argv[0])
if prog.endswith('.py'):
    prog = prog[:-(len('.py'))]

def err(msg):
    rootlog = logging.getLogger()
    if rootlog.handlers:
        rootlog.critical(msg)
    else:
        if prog:
            sys.stderr.write(prog)
            sys.stderr.write(": ")
        sys.stderr.write(msg)
        sys.stderr.write("\n")

try:

    authzadm.main(prog, sys.argv[1:])

except CommandFailure as ex:
    err("%s: %s" % (ex.cmd, str(ex)))
    sys.exit(ex.stat)

except ConfigurationException as ex:
    err("Config error: "+str(ex))
    sys.exit(6)

except Exception as ex:
    # unexpected failure
    tb.print_exc()
    err(str(ex))
    sys.exit(1)
