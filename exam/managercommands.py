# -*- test-case-name: exam.test.test_worker -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Commands sent from worker processes back to the manager process.
"""

import json

from twisted.protocols.amp import (
    Argument, Boolean, Command, Integer, Unicode, MAX_VALUE_LENGTH)
from twisted.python.compat import nativeString



class JSON(Argument):
    """
    Any JSON-serializable value, split over as many AMP values as needed to
    stay under L{MAX_VALUE_LENGTH}.

    The value stored under the argument name is the number of chunks; the
    chunks themselves are stored under C{name.0}, C{name.1}, and so on.
    """

    def toBox(self, name, strings, objects, proto):
        value = json.dumps(objects[nativeString(name)]).encode("utf-8")
        chunks = [value[i:i + MAX_VALUE_LENGTH]
                  for i in range(0, len(value), MAX_VALUE_LENGTH)]
        strings[name] = b"%d" % (len(chunks),)
        for index, chunk in enumerate(chunks):
            strings[b"%s.%d" % (name, index)] = chunk


    def fromBox(self, name, strings, objects, proto):
        count = int(strings[name])
        value = b"".join(strings[b"%s.%d" % (name, index)]
                         for index in range(count))
        objects[nativeString(name)] = json.loads(value.decode("utf-8"))



class Report(Command):
    """
    Report the outcome of a whole bucket.  Sent exactly once per worker.
    """
    arguments = [(b"id", Unicode()),
                 (b"passed", Integer()),
                 (b"failed", Integer()),
                 (b"skipped", Integer()),
                 (b"stubbed", Integer()),
                 (b"hasOnly", Boolean()),
                 (b"errors", JSON()),
                 (b"output", JSON()),
                 (b"times", JSON())]
    response = [(b"success", Boolean())]



class Log(Command):
    """
    Forward a log event of the worker.
    """
    arguments = [(b"text", JSON())]
    response = [(b"success", Boolean())]
