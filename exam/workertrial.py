# -*- test-case-name: exam.test.test_workertrial -*-
#
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Implementation of the worker side: running a bucket and reporting it.

Run as a script, this module is the main point of a worker process.  It
talks AMP with the manager over its standard input and output, so anything
else written to standard output is captured instead.
"""

import sys
import time
from io import StringIO

from twisted.internet.protocol import FileWrapper
from twisted.protocols.amp import AMP
from twisted.python import log
from twisted.python.failure import Failure
from twisted.python.reflect import namedAny

from exam import managercommands, workercommands
from exam.aggregator import RunResult, errorRecord
from exam.options import RunOptions



def runUnit(engine, path, options):
    """
    Run one unit, capturing what it writes to standard output.

    An exception raised by the engine makes the unit count as one failure.

    @return: the outcome of the unit, shaped like a worker message.
    @rtype: C{dict}
    """
    stdout = sys.stdout
    sys.stdout = output = StringIO()
    start = time.time()
    try:
        outcome = dict(engine.runUnit(path, options))
    except Exception:
        outcome = {"failed": 1, "errors": [errorRecord(path, Failure())]}
    finally:
        sys.stdout = stdout
    elapsed = outcome.pop("time", None)
    if elapsed is None:
        elapsed = (time.time() - start) * 1000
    outcome["times"] = {path: elapsed}
    outcome["output"] = output.getvalue()
    return outcome



def runBucket(units, options, engine):
    """
    Run every unit of a bucket and fold their outcomes into one message.

    @param units: unit paths, in the order they must run.
    @param options: the options of the run.
    @type options: L{RunOptions}
    @param engine: an L{exam.iexam.IEngine} provider.

    @return: the worker message for the bucket.
    @rtype: C{dict}
    """
    result = RunResult()
    for path in units:
        log.msg("Running %s" % (path,))
        result.add(runUnit(engine, path, options))
    return result.asMessage(options.runId)



class WorkerProtocol(AMP):
    """
    The worker-side exam protocol.

    @ivar finished: whether the report of this worker was acknowledged.
    """

    def __init__(self, engine=None):
        super(WorkerProtocol, self).__init__()
        self.engine = engine
        self.finished = False


    def run(self, units, options):
        """
        Run a bucket, then report it to the manager.
        """
        options = RunOptions.fromDict(options)
        engine = self.engine
        if engine is None:
            engine = namedAny(options.engine)()
        message = runBucket(units, options, engine)
        d = self.callRemote(managercommands.Report, **message)
        d.addBoth(self._reported)
        return {"success": True}

    workercommands.Run.responder(run)


    def _reported(self, result):
        self.finished = True
        if isinstance(result, Failure):
            log.err(result, "Could not report to the manager")



class WorkerLogObserver(object):
    """
    A log observer that forwards its output to an L{AMP} protocol.
    """

    def __init__(self, protocol):
        """
        @param protocol: a connected L{AMP} protocol instance.
        @type protocol: L{AMP}
        """
        self.protocol = protocol


    def emit(self, eventDict):
        """
        Produce a log output.
        """
        text = log.textFromEventDict(eventDict)
        if text is None:
            return
        self.protocol.callRemote(managercommands.Log, text=text)



def main(stdin=None, stdout=None):
    """
    Main function to be run if __name__ == "__main__".
    """
    if stdin is None:
        stdin = sys.__stdin__.buffer
    if stdout is None:
        stdout = sys.__stdout__.buffer
    # Nothing but AMP may be written to the real standard output.
    sys.stdout = StringIO()
    workerProtocol = WorkerProtocol()
    workerProtocol.makeConnection(FileWrapper(stdout))

    observer = WorkerLogObserver(workerProtocol)
    log.startLoggingWithObserver(observer.emit, False)

    while not workerProtocol.finished:
        data = stdin.read1(4096)
        if not data:
            break
        workerProtocol.dataReceived(data)
        stdout.flush()


if __name__ == '__main__':
    main()
