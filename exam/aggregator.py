# -*- test-case-name: exam.test.test_aggregator -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Fold worker messages into the result of a run.

Tests marked I{only} take precedence over everything else: as soon as one
message says it ran in only mode, whatever passed or failed before is
counted as skipped, and so is whatever arrives later outside of only mode.
"""

from twisted.internet.defer import Deferred
from twisted.python import log

from exam.manifest import Manifest



class RunResult(object):
    """
    The running aggregate of a run.

    @ivar hasOnly: whether only mode is active.
    @ivar errors: C{{title, message, trace}} records.
    @ivar outputs: output captured by units, one string per message.
    @ivar times: unit paths mapped to the milliseconds they took.
    @ivar elapsed: wall time of the run in milliseconds, once it is over.
    """

    def __init__(self):
        self.skipped = 0
        self.hasOnly = False
        self.times = {}
        self.elapsed = None
        self._reset()


    def _reset(self):
        self.passed = 0
        self.failed = 0
        self.stubbed = 0
        self.errors = []
        self.outputs = []


    def add(self, message):
        """
        Fold one message in.

        @param message: a worker message, or the outcome of a single unit in
            the same shape.
        @type message: C{dict}
        """
        passed = message.get("passed", 0)
        failed = message.get("failed", 0)
        hasOnly = bool(message.get("hasOnly"))
        self.skipped += message.get("skipped", 0)
        if self.hasOnly and not hasOnly:
            # Superseded by only mode; only its timing is merged.
            self.skipped += passed + failed
            self.times.update(message.get("times") or {})
            return
        if hasOnly and not self.hasOnly:
            previous = self.passed + self.failed
            self._reset()
            self.hasOnly = True
            self.skipped += previous
        self.passed += passed
        self.failed += failed
        self.stubbed += message.get("stubbed", 0)
        self.errors.extend(message.get("errors") or [])
        if message.get("output"):
            self.outputs.append(message["output"])
        self.times.update(message.get("times") or {})


    def addFailure(self, title, failure):
        """
        Count a failure that happened outside of any unit.  In only mode
        failed units are not counted, so it is kept as an error alone.
        """
        if not self.hasOnly:
            self.failed += 1
        self.errors.append(errorRecord(title, failure))


    def wasSuccessful(self):
        return not self.failed and not self.errors


    def asMessage(self, runId):
        """
        Return this result as a worker message tagged with C{runId}.
        """
        return {
            "id": runId,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "stubbed": self.stubbed,
            "hasOnly": self.hasOnly,
            "errors": list(self.errors),
            "output": "".join(self.outputs),
            "times": dict(self.times),
            }



def errorRecord(title, failure):
    """
    Describe a L{Failure} the way errors travel in worker messages.
    """
    return {
        "title": title,
        "message": failure.getErrorMessage(),
        "trace": failure.getTraceback(),
        }



class Aggregator(object):
    """
    Collect the messages of one run.

    @ivar runId: the identifier messages must carry to be accepted.
    @ivar result: the L{RunResult} being built.
    @ivar outstanding: how many messages are still expected.
    @ivar done: a L{Deferred} firing with L{result} once nothing is
        outstanding.
    """

    def __init__(self, runId):
        self.runId = runId
        self.result = RunResult()
        self.outstanding = None
        self.done = Deferred()
        self._failures = []


    def expect(self, count):
        """
        Set how many messages will complete the run.
        """
        self.outstanding = count
        if not count:
            self._complete()


    def addFailure(self, title, failure):
        """
        Remember a failure met outside of the workers, such as during
        discovery.  It is added to the result on completion, so only mode
        never discards it; it is then counted as an error only.
        """
        self._failures.append((title, failure))


    def receive(self, message):
        """
        Accept a worker message if it belongs to this run.

        @return: whether the message was accepted.
        @rtype: C{bool}
        """
        if message.get("id") != self.runId:
            log.msg("Discarding message from run %r during run %r" % (
                message.get("id"), self.runId))
            return False
        if not self.outstanding:
            log.msg("Discarding unexpected message for run %r" % (
                self.runId,))
            return False
        self.result.add(message)
        self.outstanding -= 1
        if not self.outstanding:
            self._complete()
        return True


    def _complete(self):
        for title, failure in self._failures:
            self.result.addFailure(title, failure)
        self.done.callback(self.result)


    def buildManifest(self):
        """
        Return the manifest made of the timing collected during this run.
        """
        return Manifest.fromTimes(self.result.times)
