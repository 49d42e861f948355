# -*- test-case-name: exam.test.test_worker -*-
#
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
This module implements the manager side of a worker: the AMP protocol which
accepts reports from worker processes, the process protocol which runs a
worker as a local child process, and a synchronous in-process stand-in.
"""

from zope.interface import implementer

from twisted.internet.address import IPv4Address
from twisted.internet.defer import Deferred, maybeDeferred
from twisted.internet.interfaces import ITransport
from twisted.internet.protocol import ProcessProtocol
from twisted.protocols.amp import AMP
from twisted.python import log

from exam import managercommands, workercommands
from exam.aggregator import RunResult, errorRecord
from exam.discovery import FAILURE_TITLE
from exam.iexam import IWorker
from exam.workertrial import runBucket

# The child reads its AMP traffic on this descriptor.
WORKER_AMP_STDIN = 0



class LocalWorkerAMP(AMP):
    """
    Local implementation of the manager commands.

    @ivar reportReceived: called with the worker message of the L{Report}
        command.
    @ivar workerIndex: used to tell workers apart in the log.
    """

    def __init__(self, reportReceived=None, workerIndex=0):
        super(LocalWorkerAMP, self).__init__()
        self.reportReceived = reportReceived
        self.workerIndex = workerIndex


    def report(self, id, passed, failed, skipped, stubbed, hasOnly, errors,
               output, times):
        """
        Hand the report of the worker over.
        """
        message = {
            "id": id,
            "passed": passed,
            "failed": failed,
            "skipped": skipped,
            "stubbed": stubbed,
            "hasOnly": hasOnly,
            "errors": errors,
            "output": output,
            "times": times,
            }
        self.reportReceived(message)
        return {"success": True}

    managercommands.Report.responder(report)


    def logReceived(self, text):
        """
        Log an event of the worker.
        """
        log.msg("worker[%d]: %s" % (self.workerIndex, text))
        return {"success": True}

    managercommands.Log.responder(logReceived)



@implementer(ITransport)
class LocalWorkerTransport(object):
    """
    A transport for the AMP protocol of a L{LocalWorker}, writing to the
    standard input of the worker process.
    """

    def __init__(self, transport):
        self._transport = transport


    def write(self, data):
        """
        Forward data to the worker process.
        """
        self._transport.writeToChild(WORKER_AMP_STDIN, data)


    def writeSequence(self, sequence):
        for data in sequence:
            self._transport.writeToChild(WORKER_AMP_STDIN, data)


    def loseConnection(self):
        self._transport.loseConnection()


    def getHost(self):
        return IPv4Address("TCP", "127.0.0.1", 0)


    def getPeer(self):
        return IPv4Address("TCP", "127.0.0.1", 0)



@implementer(IWorker)
class LocalWorker(ProcessProtocol):
    """
    Local process worker protocol. This worker runs as a local process and
    communicates via stdin/out.

    If the process ends before reporting, the run gets a synthetic message
    with one failure instead of waiting forever.

    @ivar index: the position of this worker in the pool.

    @ivar endDeferred: fires with C{None} once the worker process ended.
    """

    def __init__(self, ampFactory, index=0):
        self.ampFactory = ampFactory
        self.index = index
        self.endDeferred = Deferred()
        self._result = None
        self._runId = None


    def connectionMade(self):
        """
        When connection is made, create the AMP protocol instance.
        """
        self.ampProtocol = self.ampFactory(self._reportReceived, self.index)
        self.ampProtocol.makeConnection(LocalWorkerTransport(self.transport))


    def run(self, units, options):
        """
        Send the bucket to the worker process.
        """
        self._result = Deferred()
        self._runId = options.runId
        d = self.ampProtocol.callRemote(
            workercommands.Run, units=list(units), options=options.asDict())
        d.addErrback(self._workerLost)
        return self._result


    def _reportReceived(self, message):
        if self._result is None:
            log.msg("worker[%d] reported twice, ignoring" % (self.index,))
            return
        d, self._result = self._result, None
        d.callback(message)


    def _workerLost(self, reason):
        if self._result is None:
            return
        log.msg("worker[%d] ended without reporting: %s" % (
            self.index, reason.getErrorMessage()))
        result = RunResult()
        result.addFailure(FAILURE_TITLE, reason)
        self._reportReceived(result.asMessage(self._runId))
        self.transport.loseConnection()


    def outReceived(self, data):
        """
        Send data received from stdout to the AMP protocol's dataReceived.
        """
        self.ampProtocol.dataReceived(data)


    def errReceived(self, data):
        """
        Log data the worker wrote to stderr.
        """
        log.msg("worker[%d] stderr: %s" % (
            self.index, data.decode("utf-8", "replace")))


    def processEnded(self, reason):
        self.ampProtocol.connectionLost(reason)
        self._workerLost(reason)
        self.endDeferred.callback(None)



@implementer(IWorker)
class InProcessWorker(object):
    """
    Run a bucket synchronously in the manager process.

    @ivar engine: the L{exam.iexam.IEngine} provider running the units.
    """

    def __init__(self, engine):
        self.engine = engine


    def run(self, units, options):
        return maybeDeferred(runBucket, units, options, self.engine)
