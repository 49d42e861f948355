# -*- test-case-name: exam.test -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Exam runs a test suite across several local worker processes:

  - The L{exam.runner} module implements the coordinator which discovers
    test units, splits them between workers, gathers their results and
    records how long each unit took.  It also contains the L{run} function
    used by the command line tool.

  - The L{exam.options} module defines the command line options and the
    immutable L{RunOptions} snapshot handed to every worker.

  - The L{exam.discovery} module walks the configured paths to find units.

  - The L{exam.manifest} module reads and writes the timing manifest.

  - The L{exam.partition} module splits units into per-worker buckets.

  - The L{exam.aggregator} module folds worker reports into one result.

  - The L{exam.managercommands} and L{exam.workercommands} modules define
    the AMP commands exchanged with worker processes.

  - The L{exam.worker} module defines the coordinator side of a worker, both
    as a local child process and as a synchronous in-process call.

  - The L{exam.workertrial} module is the runnable script which is the main
    point for worker processes.

  - The L{exam.watch} module re-runs the suite when files change.
"""

__version__ = "0.4.0"
