# -*- test-case-name: exam.test.test_runner -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
This module contains the exam runner, the class responsible for coordinating
a run at the highest level: discovery and the manifest, partitioning, the
workers, aggregation and reporting.  It also contains a L{run} function to
provide a simple interface to that class for the command line tool.
"""

import os
import sys

from twisted.internet.defer import FirstError, fail, gatherResults
from twisted.internet.task import deferLater
from twisted.internet.threads import deferToThread
from twisted.python import log
from twisted.python.filepath import FilePath
from twisted.python.reflect import namedAny
from twisted.python.usage import UsageError

from exam import manifest
from exam.aggregator import Aggregator, RunResult
from exam.discovery import FAILURE_TITLE, Discovery
from exam.options import ExamOptions
from exam.partition import partition
from exam.reporter import getReporter
from exam.watch import WatchController
from exam.worker import InProcessWorker, LocalWorker, LocalWorkerAMP

# Time left to the reactor after the manifest is written.
SETTLE_DELAY = 0.099



class RunInProgress(Exception):
    """
    A run was started while another one was still active.
    """



class Run(object):
    """
    The context of one run.

    @ivar options: the options of the run, carrying its own C{runId}.
    @type options: L{exam.options.RunOptions}

    @ivar startTime: when the run started, in seconds.

    @ivar aggregator: collects the worker messages of the run.
    @type aggregator: L{Aggregator}
    """

    def __init__(self, options, startTime):
        self.options = options
        self.id = options.runId
        self.startTime = startTime
        self.aggregator = Aggregator(self.id)



class ExamRunner(object):
    """
    Coordinate runs of the suite, one at a time.

    @ivar options: the options every run is derived from.
    @type options: L{exam.options.RunOptions}

    @ivar reporter: an L{exam.iexam.IReporter} provider.

    @ivar clock: an C{IReactorTime} provider, used to time runs.

    @ivar fsCall: the callable through which every filesystem call goes.

    @ivar spawner: a function spawning a process, given a process protocol,
        or C{None} to use the reactor.

    @ivar cpuCount: the number of CPUs to size the pool after, or C{None}
        to ask the system.

    @ivar current: the active L{Run}, if any.
    """

    def __init__(self, options, reporter, clock=None, fsCall=None,
                 spawner=None, cpuCount=None):
        if clock is None:
            from twisted.internet import reactor as clock
        if fsCall is None:
            fsCall = deferToThread
        self.options = options
        self.reporter = reporter
        self.clock = clock
        self.fsCall = fsCall
        self.spawner = spawner
        self.cpuCount = cpuCount
        self.manifestPath = manifest.manifestPath(options.dir)
        self.running = False
        self.current = None
        self._runCount = 0
        self._logFileObject = None


    def start(self):
        """
        Start a run.

        @return: a L{Deferred} firing with the L{RunResult} once it has been
            reported and the manifest written, or failing with
            L{RunInProgress} if a run is already active.
        """
        if self.running:
            return fail(RunInProgress(self.current.id))
        self.running = True
        self._runCount += 1
        options = self.options.derive(
            runId="%s-%d" % (self.options.runId, self._runCount))
        run = self.current = Run(options, self.clock.seconds())
        log.msg("Starting run %s" % (run.id,))
        self.reporter.start()

        discovery = Discovery(options, self.fsCall)
        loading = self.fsCall(manifest.load, self.manifestPath)
        d = gatherResults([discovery.discover(), loading], consumeErrors=True)
        d.addErrback(self._unwrapFirstError)
        d.addCallback(self._assignUnits, run, discovery)
        d.addCallback(self._finish, run)
        d.addBoth(self._stopped)
        return d


    def _unwrapFirstError(self, failure):
        failure.trap(FirstError)
        return failure.value.subFailure


    def _assignUnits(self, results, run, discovery):
        units, history = results
        aggregator = run.aggregator
        for failure in discovery.failures:
            aggregator.addFailure(FAILURE_TITLE, failure)
        if not units:
            log.msg("No unit found for run %s" % (run.id,))
            aggregator.expect(0)
            return aggregator.done

        buckets = partition(units, history,
                            run.options.workerCap(self.cpuCount))
        log.msg("Running %d units in %d buckets" % (len(units), len(buckets)))
        workers = self.createWorkers(len(buckets), run.options)
        aggregator.expect(len(buckets))
        for worker, bucket in zip(workers, buckets):
            d = worker.run(bucket, run.options)
            d.addCallback(self.receiveMessage)
            d.addErrback(self._workerFailed, run)
        return aggregator.done


    def receiveMessage(self, message):
        """
        Hand a worker message to the aggregator of the active run.

        @return: whether the message was accepted.
        """
        if self.current is None:
            log.msg("Discarding message from run %r, no run is active" % (
                message.get("id"),))
            return False
        return self.current.aggregator.receive(message)


    def _workerFailed(self, failure, run):
        log.msg("Worker of run %s failed: %s" % (
            run.id, failure.getErrorMessage()))
        result = RunResult()
        result.addFailure(FAILURE_TITLE, failure)
        return self.receiveMessage(result.asMessage(run.id))


    def _finish(self, result, run):
        result.elapsed = int(round(
            (self.clock.seconds() - run.startTime) * 1000))
        self.reporter.all(result)
        if run.options.timestamp:
            self.reporter.timestamp()
        d = self.fsCall(manifest.save, self.manifestPath,
                       run.aggregator.buildManifest())
        d.addCallback(lambda ignored: result)
        return d


    def _stopped(self, result):
        self.running = False
        self.current = None
        return result


    def createLocalWorkers(self, quantity):
        """
        Create local worker protocol instances and return them.

        @param quantity: the number of local workers to be created.

        @return: a list of C{quantity} L{LocalWorker} instances.
        """
        return [LocalWorker(LocalWorkerAMP, x) for x in range(quantity)]


    def launchWorkerProcesses(self, spawner, protocols, directory):
        """
        Spawn processes from a list of process protocols.

        @param spawner: a function which will spawn a local process, given a
            process protocol and a command.

        @param protocols: an iterable of C{ProcessProtocol} instances.

        @param directory: the working directory of the processes.
        """
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(sys.path)
        for protocol in protocols:
            spawner(protocol, sys.executable,
                    args=[sys.executable, "-m", "exam.workertrial"],
                    env=env, path=directory)


    def createWorkers(self, count, options):
        """
        Return C{count} L{exam.iexam.IWorker} providers for a run.
        """
        if not options.multiProcess:
            engine = namedAny(options.engine)()
            return [InProcessWorker(engine) for x in range(count)]
        spawner = self.spawner
        if spawner is None:
            from twisted.internet import reactor
            spawner = reactor.spawnProcess
        workers = self.createLocalWorkers(count)
        self.launchWorkerProcesses(spawner, workers, options.dir)
        return workers


    def startLogging(self, logfile):
        """
        Send the log to C{logfile}, relative to the project directory.
        """
        path = FilePath(os.path.join(self.options.dir, logfile))
        parent = path.parent()
        if not parent.isdir():
            parent.makedirs()
        self._logFileObject = open(path.path, "a")
        log.startLogging(self._logFileObject, setStdout=False)


    def getConfig(argv=None):
        """
        Get configuration from the command line.

        @return: an L{ExamOptions} instance.

        @raise SystemExit: raise this if the command-line options are not
            parseable.
        """
        config = ExamOptions()
        try:
            config.parseOptions(argv)
        except UsageError as ue:
            raise SystemExit("%s: %s" % (sys.argv[0], ue))
        return config

    getConfig = staticmethod(getConfig)


    def fromConfig(cls, config, **kwargs):
        """
        Generate a runner from the config.
        """
        options = config.toRunOptions()
        reporter = getReporter(options.reporter)()
        return cls(options, reporter, **kwargs)

    fromConfig = classmethod(fromConfig)


    def _run(self, reactor):
        """
        Run the suite once, or on every change in watch mode, until the
        reactor stops.

        @return: 0 if the run was successful, 1 otherwise.
        @rtype: C{int}
        """
        if self.options.watch:
            controller = WatchController(self, self.options.dir, clock=reactor)
            reactor.callWhenRunning(controller.start)
            reactor.run()
            return 0

        status = []

        def finished(result):
            status.append(int(not result.wasSuccessful()))

        def failed(failure):
            log.err(failure, "Run failed")
            status.append(1)

        def go():
            d = self.start()
            d.addCallbacks(finished, failed)
            d.addCallback(lambda ignored: deferLater(
                reactor, SETTLE_DELAY, reactor.stop))

        reactor.callWhenRunning(go)
        reactor.run()
        if not status:
            return 1
        return status[0]



def run():
    """
    Main run function to fire exam.
    """
    config = ExamRunner.getConfig()
    runner = ExamRunner.fromConfig(config)
    runner.startLogging(config["logfile"])
    from twisted.internet import reactor
    status = runner._run(reactor)
    sys.exit(status)
