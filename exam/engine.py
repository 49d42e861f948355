# -*- test-case-name: exam.test.test_engine -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
The default execution engine, running the test cases of a unit with Trial.

A test method or a whole test case class decorated with L{only} makes its
unit run in only mode: the other tests of the unit are skipped.
"""

import sys

from zope.interface import implementer

from twisted.python.reflect import filenameToModuleName
from twisted.trial.reporter import TestResult
from twisted.trial.runner import TestLoader, filenameToModule

from exam.iexam import IEngine



def only(thing):
    """
    Mark a test method or test case class as exclusive.
    """
    thing.only = True
    return thing



def _iterateTests(suite):
    """
    Yield every test case of a possibly nested suite.
    """
    try:
        tests = iter(suite)
    except TypeError:
        yield suite
    else:
        for test in tests:
            for case in _iterateTests(test):
                yield case



def _isExclusive(test):
    method = getattr(test, getattr(test, "_testMethodName", ""), None)
    return bool(getattr(method, "only", False)
                or getattr(type(test), "only", False))



def _errors(title, pairs):
    return [{"title": "%s %s" % (title, test.id()),
             "message": failure.getErrorMessage(),
             "trace": failure.getTraceback()}
            for (test, failure) in pairs]



@implementer(IEngine)
class TrialEngine(object):
    """
    Load the unit as a module and run its test cases.

    Expected failures and unexpected successes (Trial's I{todo}) count as
    stubbed.  The unit is imported afresh every time, so a re-run sees its
    latest code.
    """

    loaderFactory = TestLoader

    def runUnit(self, path, options):
        sys.modules.pop(filenameToModuleName(path), None)
        module = filenameToModule(path)
        tests = list(_iterateTests(self.loaderFactory().loadModule(module)))
        exclusive = [test for test in tests if _isExclusive(test)]
        result = TestResult()
        for test in exclusive or tests:
            test.run(result)
        skipped = len(result.skips)
        if exclusive:
            skipped += len(tests) - len(exclusive)
        return {
            "passed": result.successes,
            "failed": len(result.failures) + len(result.errors),
            "skipped": skipped,
            "stubbed": (len(result.expectedFailures)
                        + len(result.unexpectedSuccesses)),
            "hasOnly": bool(exclusive),
            "errors": (_errors("FAIL:", result.failures)
                       + _errors("ERROR:", result.errors)),
            }
