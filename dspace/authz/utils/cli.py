"""
support for building the authz command-line tools out of a set of subcommand modules.

A subcommand module (or object) provides ``default_name``, ``help`` and ``description`` strings, a
``load_into(parser, dests, cmdname)`` function that adds its arguments to a subparser, and an
``execute(args, config, log)`` function.  If ``load_into()`` returns an object, that object is
executed instead of the module.
"""
import os, sys, logging
from copy import deepcopy
from argparse import ArgumentParser, HelpFormatter

from dspace.base.config import ConfigurationException
from dspace.base import config as cfgmod
from .logging import explain

class _ParaHelpFormatter(HelpFormatter):
    # keep blank-line paragraph breaks in descriptions and epilogs
    def _fill_text(self, text, width, indent):
        fill = super(_ParaHelpFormatter, self)._fill_text
        return "\n\n".join(fill(para, width, indent) for para in text.split("\n\n"))

def define_prog_opts(progname, description=None, epilog=None, parser=None):
    """
    add the options common to all authz subcommands to an argument parser

    :param str progname:    the program name to display in usage messages
    :param str description: the text shown before the option descriptions (optional)
    :param str epilog:      the text shown after the option descriptions (optional)
    :param ArgumentParser parser:  the parser to add the options to; if not given, a new one
                            is created.
    :return:  the configured parser
    """
    if not parser:
        parser = ArgumentParser(progname, None, description, epilog, formatter_class=_ParaHelpFormatter)

    cmdhelp = "Run '%(prog)s CMD -h' for help specifically on CMD."
    parser.epilog = (parser.epilog and cmdhelp+"\n\n"+parser.epilog) or cmdhelp

    parser.add_argument("-w", "--workdir", type=str, dest='workdir', metavar='DIR', default="",
                        help="resolve relative input and log file paths against DIR; default='.'")
    parser.add_argument("-c", "--config", type=str, dest='conf', metavar='FILE',
                        help="load the configuration from FILE instead of the default file")
    parser.add_argument("-l", "--logfile", type=str, dest='logfile', metavar='FILE',
                        help="write log messages to FILE (within DIR) instead of the configured file")
    parser.add_argument("-q", "--quiet", action="store_true", dest='quiet',
                        help="suppress messages to standard error")
    parser.add_argument("-D", "--debug", action="store_true", dest='debug',
                        help="include DEBUG messages in the log file")
    parser.add_argument("-v", "--verbose", action="store_true", dest='verbose',
                        help="echo log messages to the terminal, too")
    parser.add_argument("-U", "--user", type=str, dest="user", metavar='EPERSONID',
                        help="the identifier of the eperson to carry out the operation as")

    return parser

class CommandFailure(Exception):
    """
    raised when a subcommand cannot complete; the program should exit with the status given by
    the :py:attr:`stat` attribute:

      * 1:  a processing failure not covered below
      * 2:  a misused command-line option or an unknown command
      * 3:  the input data could not be read or is invalid, or a target object was not found
      * 6:  a configuration error
      * 9:  the user is not authorized to carry out the operation
      * 11: the operation completed, but some objects could not be updated
    """

    def __init__(self, cmdname, message, exstat=1, cause=None):
        """
        :param str cmdname:   the name of the command that failed
        :param str message:   what went wrong; if None, the message is taken from ``cause``
        :param int exstat:    the status to exit with
        :param Exception cause:  the exception that triggered the failure, if any
        """
        if not message:
            message = (cause and str(cause)) or "Unknown command failure"
        super(CommandFailure, self).__init__(message)
        self.stat = exstat
        self.cmd = cmdname
        self.cause = cause

class CLISuite(object):
    """
    a command-line program made up of a set of subcommands (e.g. ``authzadm``).  Subcommands are
    added with :py:meth:`load_subcommand`, and a command line is run with :py:meth:`execute`.
    """

    def __init__(self, progname, defconffile=None, parser=None):
        """
        :param str progname:     the name of the program
        :param str defconffile:  the configuration file to load when none is given via --config
        :param ArgumentParser parser:  the parser for the program's top-level options; if not
                                 given, one is created with :py:func:`define_prog_opts`.
        """
        self.suitename = progname
        self._defconffile = defconffile
        if not parser:
            parser = define_prog_opts(progname)
        self.parser = parser
        self._dests = set(a.dest for a in parser._actions)
        self._subparser_src = parser.add_subparsers(title="commands", dest="cmd")
        self._cmds = {}

    def parse_args(self, args):
        return self.parser.parse_args(args)

    def load_subcommand(self, cmdmod, cmdname=None):
        """
        add a subcommand to this program
        :param module|object cmdmod: the subcommand implementation
        :param str cmdname:  the name that invokes the subcommand; if not given, the module's
                             ``default_name`` is used.
        :raise ValueError:  if ``cmdmod`` does not provide a ``load_into()`` function
        """
        if not hasattr(cmdmod, "load_into"):
            raise ValueError("command module/object has no load_into() function: " + repr(cmdmod))
        cmdname = cmdname or cmdmod.default_name

        subparser = self._subparser_src.add_parser(cmdname, help=cmdmod.help,
                                                   description=getattr(cmdmod, 'description', None),
                                                   formatter_class=_ParaHelpFormatter)
        self._cmds[cmdname] = cmdmod.load_into(subparser, self._dests, cmdname) or cmdmod
        self._dests.update(a.dest for a in subparser._actions)

    def extract_config_for_cmd(self, config, cmdname, cmd=None):
        """
        return the configuration to hand to a subcommand.  The parameters in ``config['cmd']``
        keyed by the command's name (or, failing that, by the module's ``default_name``) override
        the top-level ones, and the ``cmd`` property itself is dropped.  If there is no ``cmd``
        property, ``config`` is returned as is.
        """
        if 'cmd' not in config:
            return config

        percmd = config['cmd']
        if cmdname not in percmd and cmd is not None:
            cmdname = getattr(cmd, 'default_name', cmdname)

        out = deepcopy(config)
        del out['cmd']
        if cmdname in percmd:
            out = cfgmod.merge_config(percmd[cmdname], out)
        return out

    def configure_log(self, args, config):
        """
        set up the log file (and, unless --quiet, a terminal handler) according to the
        command-line options and configuration, and return the program's logger.
        """
        workdir = config.get('working_dir', os.getcwd())
        if args.logfile:
            config['logfile'] = os.path.join(workdir, args.logfile)
        else:
            config.setdefault('logfile', self.suitename + ".log")
        config.setdefault('logdir', workdir)
        cfgmod.configure_log(level=(args.debug and logging.DEBUG) or cfgmod.NORMAL, config=config)

        if not args.quiet:
            handler = logging.StreamHandler(sys.stderr)
            if args.verbose:
                handler.setLevel((args.debug and logging.DEBUG) or cfgmod.NORMAL)
                handler.setFormatter(logging.Formatter("%(name)s %(levelname)s: %(message)s"))
            else:
                handler.setLevel(logging.INFO)
                handler.setFormatter(logging.Formatter(self.suitename + " %(levelname)s: %(message)s"))
            logging.getLogger().addHandler(handler)

        log = logging.getLogger("cli."+self.suitename)
        log.setLevel(cfgmod.NORMAL)
        if args.verbose:
            log.info("FYI: Writing log messages to %s", cfgmod.global_logfile)
        return log

    def load_config(self, args):
        """
        return the configuration named by --config or, if not given, the default configuration
        file (if it exists).  An empty dictionary is returned if there is no file to load.
        """
        if args.conf:
            return cfgmod.load_from_file(args.conf)
        if self._defconffile and os.path.isfile(self._defconffile):
            return cfgmod.load_from_file(self._defconffile)
        return {}

    def _set_working_dir(self, args, config):
        if args.workdir:
            args.workdir = os.path.abspath(args.workdir)
            if not os.path.isdir(args.workdir):
                raise CommandFailure(args.cmd, "Working dir is not an existing directory: "+args.workdir, 2)
            config['working_dir'] = args.workdir
        else:
            config['working_dir'] = os.path.abspath(config.get('working_dir', os.getcwd()))

    def execute(self, args, config=None):
        """
        run the subcommand named in the arguments
        :param list|Namespace args:  the program arguments as a list of strings or as an
                                     already-parsed ``argparse.Namespace``
        :param dict config:  the configuration to use; if None, it is loaded via
                             :py:meth:`load_config`.
        """
        argv = None
        if isinstance(args, list):
            argv = args
            args = self.parse_args(args)
        cmd = self._cmds.get(args.cmd)
        if cmd is None:
            raise CommandFailure(args.cmd, "Unrecognized command: "+str(args.cmd), 2)

        try:
            if config is None:
                config = self.load_config(args)
        except ConfigurationException as ex:
            raise CommandFailure(args.cmd, "Configuration error: "+str(ex), 6, ex)
        config = self.extract_config_for_cmd(config, args.cmd, cmd)
        self._set_working_dir(args, config)

        proglog = self.configure_log(args, config)
        if argv:
            explain(proglog, "Executing: %s %s", self.suitename, " ".join(argv))

        try:
            return cmd.execute(args, config, proglog.getChild(args.cmd))
        except CommandFailure as ex:
            ex.cmd = (ex.cmd and ex.cmd != args.cmd and args.cmd+" "+ex.cmd) or args.cmd
            raise ex
        except ConfigurationException as ex:
            raise CommandFailure(args.cmd, "Configuration error: "+str(ex), 6, ex)
