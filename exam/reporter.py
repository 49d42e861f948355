# -*- test-case-name: exam.test.test_reporter -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Reporters present the aggregated result of a run.
"""

import json
import sys
import time

from zope.interface import implementer

from exam.iexam import IReporter



@implementer(IReporter)
class ConsoleReporter(object):
    """
    Write a human readable summary of a run.
    """

    def __init__(self, stream=None):
        if stream is None:
            stream = sys.stdout
        self.stream = stream


    def start(self):
        pass


    def all(self, result):
        write = self.stream.write
        for output in result.outputs:
            write(output)
            if not output.endswith("\n"):
                write("\n")
        for error in result.errors:
            write("\n%s\n%s\n" % (error["title"], error.get("trace")
                                  or error.get("message")))
        write("\n")
        if result.hasOnly:
            write("Only mode: tests not marked only were skipped.\n")
        write("%d passed, %d failed, %d skipped, %d stubbed" % (
            result.passed, result.failed, result.skipped, result.stubbed))
        if result.elapsed is not None:
            write(" (%dms)" % (result.elapsed,))
        write("\n%s\n" % ("PASSED" if result.wasSuccessful() else "FAILED",))
        self.stream.flush()


    def timestamp(self):
        self.stream.write(time.strftime("%Y-%m-%d %H:%M:%S\n"))
        self.stream.flush()



@implementer(IReporter)
class JSONReporter(object):
    """
    Write the result of a run as a single JSON document.
    """

    def __init__(self, stream=None):
        if stream is None:
            stream = sys.stdout
        self.stream = stream


    def start(self):
        pass


    def all(self, result):
        document = {
            "passed": result.passed,
            "failed": result.failed,
            "skipped": result.skipped,
            "stubbed": result.stubbed,
            "hasOnly": result.hasOnly,
            "elapsed": result.elapsed,
            "errors": result.errors,
            "outputs": result.outputs,
            }
        self.stream.write(json.dumps(document, indent=2) + "\n")
        self.stream.flush()


    def timestamp(self):
        pass



reporters = {
    "console": ConsoleReporter,
    "json": JSONReporter,
    }



def getReporter(name):
    """
    Return the reporter class registered under C{name}.

    @raise KeyError: if there is no such reporter.
    """
    try:
        return reporters[name]
    except KeyError:
        raise KeyError("Unknown reporter %r, expected one of %s" % (
            name, ", ".join(sorted(reporters))))
