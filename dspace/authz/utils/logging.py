"""
Utility logging functions
"""
import logging

from dspace.base.config import NORMAL

utilslog = logging.getLogger("authz.utils")
BLAB = logging.DEBUG - 1
EXPLAIN = NORMAL

def blab(log, msg, *args, **kwargs):
    """
    log a verbose message. This uses a log level, BLAB, that is lower than 
    DEBUG; in other words when a log's level is set to DEBUG, this message 
    will not be displayed.  This is intended for messages that would appear 
    voluminously if the level were set to BLAB. 

    :param Logger log:  the Logger object to record to
    :param str    msg:  the message to write
    :param args:        treat msg as a template and insert these values
    :param kwargs:      other arbitrary keywords to pass to log.log()
    """
    log.log(BLAB, msg, *args, **kwargs)

def explain(log, msg, *args, **kwargs):
    """
    log a message that is quieter than INFO but louder than DEBUG.  This is intended for messages
    that should go into the log, but not necessarily to the terminal.
    """
    log.log(EXPLAIN, msg, *args, **kwargs)
