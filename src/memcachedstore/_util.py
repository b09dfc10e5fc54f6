# -*- coding: utf-8 -*-
##############################################################################
#
# Copyright (c) 2019 Zope Foundation and Contributors.
# All Rights Reserved.
#
# This software is subject to the provisions of the Zope Public License,
# Version 2.1 (ZPL).  A copy of the ZPL should accompany this distribution.
# THIS SOFTWARE IS PROVIDED "AS IS" AND ANY AND ALL EXPRESS OR IMPLIED
# WARRANTIES ARE DISCLAIMED, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED
# WARRANTIES OF TITLE, MERCHANTABILITY, AGAINST INFRINGEMENT, AND FITNESS
# FOR A PARTICULAR PURPOSE.
#
##############################################################################

import os
import sys
from functools import wraps
from time import perf_counter

import logging
from logging import DEBUG
from logging import INFO
from logging import WARN
from logging import ERROR

import gevent
from gevent.event import AsyncResult

from ZConfig.datatypes import asBoolean
from ZConfig.datatypes import integer
from ZConfig.datatypes import RangeCheckedConversion
from ZConfig.datatypes import stock_datatypes

from perfmetrics import Metric

_logger = logging.getLogger('memcachedstore')
perf_logger = _logger.getChild('timing')

#: Beneath (less important than) DEBUG. "Extremely verbose"
TRACE = 5
logging.addLevelName(TRACE, 'TRACE')

__all__ = [
    'TRACE',
    'dispatch',
    'get_boolean_from_environ',
    'get_duration_from_environ',
    'get_positive_integer_from_environ',
    'log_timed',
    'metricmethod_sampled',
    'parse_boolean',
    'positive_integer',
    'to_utf8',
]

positive_integer = RangeCheckedConversion(integer, min=1)
non_negative_float = RangeCheckedConversion(float, min=0)

def _setting_from_environ(converter, environ_name, default, logger):
    result = default
    env_val = os.environ.get(environ_name, default)
    if env_val is not default:
        try:
            result = converter(env_val)
        except (ValueError, TypeError):
            logger.exception("Failed to parse environment value %r for key %r",
                             env_val, environ_name)
            result = default

    logger.debug('Using value %s from environ %r=%r (default=%r)',
                 result, environ_name, env_val, default)
    return result


def get_positive_integer_from_environ(environ_name, default, logger=_logger):
    return _setting_from_environ(positive_integer, environ_name, default, logger)

def get_non_negative_float_from_environ(environ_name, default, logger=_logger):
    return _setting_from_environ(non_negative_float, environ_name, default, logger)

def parse_boolean(val):
    if val == '0':
        return False
    if val == '1':
        return True
    return asBoolean(val)

def get_boolean_from_environ(environ_name, default, logger=_logger):
    return _setting_from_environ(parse_boolean, environ_name, default, logger)

def get_duration_from_environ(environ_name, default, logger=_logger):
    """
    Return a floating-point number of seconds from the environment *environ_name*,
    or *default*.

    Examples: ``1.24s``, ``3m``, ``1m 3.6s``::

        >>> import os
        >>> os.environ['MCS_TEST_VAL'] = '2.3'
        >>> get_duration_from_environ('MCS_TEST_VAL', None)
        2.3
        >>> os.environ['MCS_TEST_VAL'] = '5.4s'
        >>> get_duration_from_environ('MCS_TEST_VAL', None)
        5.4
        >>> os.environ['MCS_TEST_VAL'] = '1m 3.2s'
        >>> get_duration_from_environ('MCS_TEST_VAL', None)
        63.2
        >>> os.environ['MCS_TEST_VAL'] = 'Invalid' # No time specifier
        >>> get_duration_from_environ('MCS_TEST_VAL', 42)
        42
    """

    def convert(val):
        # The default time-interval accepts only integers; that's not fine
        # grained enough for these durations.
        if any(c in val for c in ' wdhms'):
            delta = stock_datatypes['timedelta'](val)
            return delta.total_seconds()
        return float(val)

    return _setting_from_environ(convert, environ_name, default, logger)


def _get_log_time_level(level_int, default):
    level_name = logging.getLevelName(level_int)
    val = get_duration_from_environ('MCS_PERF_LOG_%s_MIN' % level_name, default,
                                    logger=perf_logger)
    return (level_int, float(val))

# A list of tuples (level_int, min_duration), ordered by increasing
# min_duration. Clearing this list disables timing logs entirely.
# Copy it into `func.__wrapped__.log_levels` to change the thresholds
# for an individual function.
_LOG_TIMED_DEFAULT_DURATIONS = [
    _get_log_time_level(TRACE, 0.31),
    _get_log_time_level(DEBUG, 1.24),
    _get_log_time_level(INFO, 3.03),
    _get_log_time_level(WARN, 9.24),
    _get_log_time_level(ERROR, 20.10)
]

_LOG_TIMED_DEFAULT_DURATIONS.sort(key=lambda x: x[1])

# timed events above this threshold will include the arguments.
_LOG_TIMED_DEFAULT_DETAILS_THRESHOLD = logging.getLevelName(
    _setting_from_environ(str, 'MCS_PERF_LOG_DETAILS_LEVEL', 'WARN', logger=perf_logger)
)

# If this is false when a module is imported, timer decorations
# are omitted.
_LOG_TIMED_COMPILETIME_ENABLE = get_boolean_from_environ(
    'MCS_PERF_LOG_ENABLE',
    'on',
    logger=perf_logger,
)

def do_log_duration_info(basic_msg, func,
                         args, kwargs,
                         actual_duration,
                         log=perf_logger):
    if func is None:
        # Timing was disabled at compile time
        return

    log_level = 0
    log_msg = basic_msg
    log_args = (func.__name__, actual_duration)
    for level, duration in func.log_levels:
        if actual_duration < duration:
            break
        log_level = level

    if not log.isEnabledFor(log_level):
        return

    if log_level >= func.log_details_threshold:
        try:
            load = os.getloadavg()
        except (OSError, AttributeError):
            load = "<unknown load>"

        if args and kwargs:
            log_msg += " (load=%s) (args=%r kwargs=%r)"
            log_args += (load, args, kwargs)
        elif args:
            log_msg += " (load=%s) (args=%r)"
            log_args += (load, args)

    log.log(log_level, log_msg, *log_args)

def log_timed(func):
    # Store these on each individual function so they can be
    # tweaked later: Class.func.__wrapped__.log_levels = X
    func.log_levels = _LOG_TIMED_DEFAULT_DURATIONS
    func.log_details_threshold = _LOG_TIMED_DEFAULT_DETAILS_THRESHOLD
    if not _LOG_TIMED_COMPILETIME_ENABLE:
        if getattr(func, '__wrapped__', func) is func:
            func.__wrapped__ = None
        return func

    counter = perf_counter
    log = do_log_duration_info
    func_logger = logging.getLogger(func.__module__).getChild('timing')

    @wraps(func)
    def f(*args, **kwargs):
        begin = counter()
        try:
            result = func(*args, **kwargs)
        finally:
            duration = counter() - begin
            log("Function %s took %.3fs.", func, args, kwargs, duration,
                log=func_logger)

        return result

    return f


METRIC_SAMPLE_RATE = get_non_negative_float_from_environ('MCS_PERF_STATSD_SAMPLE_RATE', 0.1,
                                                         logger=perf_logger)

metricmethod_sampled = Metric(method=True, rate=METRIC_SAMPLE_RATE)


def dispatch(func, args=(), callback=None):
    """
    Run ``func(*args)`` in a new greenlet.

    Returns a :class:`gevent.event.AsyncResult` that is resolved with
    the return value, or rejected with the exception ``func`` raised.
    If *callback* is given, it is also called as ``callback(error, result)``
    once the call finishes: ``(None, value)`` on success and
    ``(exception, None)`` on failure. The exception is never wrapped.
    """
    result = AsyncResult()

    def run():
        try:
            value = func(*args)
        except Exception as ex: # pylint:disable=broad-except
            _logger.log(TRACE, "Call to %s failed: %r", func, ex)
            result.set_exception(ex, sys.exc_info())
        else:
            result.set(value)

    if callback is not None:
        result.rawlink(lambda r: callback(r.exception, r.value))

    gevent.spawn(run)
    return result


def to_utf8(data):
    if data is None or isinstance(data, bytes):
        return data
    return data.encode("utf-8")
