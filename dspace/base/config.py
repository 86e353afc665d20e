"""
Utilities for loading, merging, and applying configuration data.

Configuration in the ``dspace`` subsystems is always expressed as a (nested) dictionary.  Components
are handed the portion of the configuration that applies to them when they are constructed; they do
not consult a global configuration store.  This module provides the functions for reading such
dictionaries from files (YAML or JSON), for layering one configuration over another, and for
setting up logging based on configuration parameters.
"""
import os, json, logging
from collections.abc import Mapping
from copy import deepcopy
from pathlib import Path

import yaml

from . import DSpaceException

__all__ = [ "ConfigurationException", "load_from_file", "merge_config", "configure_log", "NORMAL",
            "get_bool", "global_logdir", "global_logfile" ]

NORMAL = 15
logging.addLevelName(NORMAL, "NORMAL")

DEF_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"

global_logdir = None
global_logfile = None

class ConfigurationException(DSpaceException):
    """
    an exception indicating that the configuration data is missing required data or is otherwise
    invalid.
    """

    def __init__(self, message: str=None, cause: Exception=None, param: str=None):
        """
        create the exception
        :param str message:  the description of the configuration problem
        :param Exception cause:  the underlying error, if any
        :param str   param:  the name of the offending configuration parameter (optional)
        """
        if not message:
            if param:
                message = "Problem with configuration parameter: " + param
            elif cause:
                message = str(cause)
            else:
                message = "Unknown configuration error"
        super(ConfigurationException, self).__init__(message, cause)
        self.param = param

def load_from_file(configfile) -> Mapping:
    """
    read the configuration data from the given file.  The format is determined by the filename
    extension:  files ending in ``.yml`` or ``.yaml`` are parsed as YAML; all others as JSON.

    :param str|Path configfile:  the path to the configuration file
    :raise ConfigurationException:  if the file cannot be read or parsed
    """
    configfile = Path(configfile)
    try:
        with open(configfile) as fd:
            if configfile.suffix.lower() in (".yml", ".yaml"):
                out = yaml.safe_load(fd)
            else:
                out = json.load(fd)
    except FileNotFoundError as ex:
        raise ConfigurationException("{0}: configuration file not found".format(configfile), ex)
    except (ValueError, yaml.YAMLError) as ex:
        raise ConfigurationException("{0}: syntax error in config file: {1}".format(configfile, str(ex)),
                                     ex)
    except OSError as ex:
        raise ConfigurationException("{0}: unable to read config file: {1}".format(configfile, str(ex)),
                                     ex)

    if out is None:
        out = {}
    if not isinstance(out, Mapping):
        raise ConfigurationException("{0}: config file does not contain a dictionary".format(configfile))
    return out

def merge_config(primary: Mapping, defconf: Mapping) -> Mapping:
    """
    merge two configurations, where the values in ``primary`` override those in ``defconf``.
    Dictionaries found in both are merged recursively; all other values are replaced wholesale.
    A new dictionary is returned; neither input is altered.

    :param dict primary:  the overriding configuration
    :param dict defconf:  the configuration providing default values
    """
    out = deepcopy(defconf) if defconf else {}
    if not primary:
        return out
    for key, val in primary.items():
        if isinstance(val, Mapping) and isinstance(out.get(key), Mapping):
            out[key] = merge_config(val, out[key])
        else:
            out[key] = deepcopy(val)
    return out

def get_bool(config: Mapping, param: str, default: bool=False) -> bool:
    """
    return a configuration parameter's value interpreted as a boolean.  Strings like "true", "yes",
    "on", and "1" (case-insensitive) are interpreted as True.
    """
    val = config.get(param, default)
    if isinstance(val, str):
        return val.strip().lower() in ("true", "yes", "on", "1")
    return bool(val)

def configure_log(logfile: str=None, level: int=None, format: str=None, config: Mapping=None,
                  addstderr: bool=False):
    """
    configure the root logger to record messages to a log file.

    :param str logfile:  the path to the log file; if relative, it is taken to be relative to the
                         ``logdir`` configuration parameter.  If not given, the ``logfile``
                         configuration parameter is used.
    :param int   level:  the logging level to set on the file handler; if not given, the ``loglevel``
                         configuration parameter is used (default: NORMAL)
    :param str  format:  the message format to use; default is "TIME NAME LEVEL: MESSAGE"
    :param dict config:  the configuration containing the parameters
    :param bool addstderr:  if True, also send messages to standard error
    """
    global global_logdir, global_logfile
    if not config:
        config = {}
    if not logfile:
        logfile = config.get('logfile', 'dspace.log')
    if not os.path.isabs(logfile):
        logdir = config.get('logdir', os.getcwd())
        logfile = os.path.join(logdir, logfile)
    if level is None:
        level = config.get('loglevel', NORMAL)
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
            if not isinstance(level, int):
                raise ConfigurationException("loglevel: unrecognized logging level name",
                                             param="loglevel")
    if not format:
        format = config.get('logformat', DEF_FORMAT)

    global_logdir = os.path.dirname(logfile)
    global_logfile = logfile

    rootlogger = logging.getLogger()
    rootlogger.setLevel(logging.DEBUG - 1)
    handler = logging.FileHandler(logfile)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format))
    rootlogger.addHandler(handler)

    if addstderr:
        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)
        handler.setFormatter(logging.Formatter(format))
        rootlogger.addHandler(handler)

    return rootlogger
