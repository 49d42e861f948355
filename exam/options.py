# -*- test-case-name: exam.test.test_options -*-
#
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Command line options and the per-run options snapshot.
"""

import os
import re
import sys
from importlib.machinery import SOURCE_SUFFIXES

from twisted.python.usage import Options, UsageError
from twisted.python.util import FancyEqMixin

import exam
from exam.reporter import reporters



class RunOptions(FancyEqMixin, object):
    """
    An immutable snapshot of the configuration of a run.

    Every value is read as an attribute.  A changed copy is made with
    L{derive}; the copy shipped to worker processes is made with L{asDict}
    and L{fromDict}.

    @cvar defaults: the known option names and their default values.
    """

    defaults = {
        "paths": ("test",),
        "dir": ".",
        "grep": None,
        "ignore": None,
        "flat": False,
        "reporter": "console",
        "runId": "EXAM",
        "multiProcess": False,
        "watch": False,
        "timestamp": False,
        "workers": None,
        "engine": "exam.engine.TrialEngine",
        "extensions": tuple(SOURCE_SUFFIXES),
        }

    compareAttributes = tuple(sorted(defaults))

    def __init__(self, **kwargs):
        unknown = set(kwargs) - set(self.defaults)
        if unknown:
            raise ValueError(
                "Unknown options: %s" % (", ".join(sorted(unknown)),))
        values = dict(self.defaults)
        values.update(kwargs)
        values["paths"] = tuple(values["paths"])
        values["extensions"] = tuple(values["extensions"])
        workers = values["workers"]
        if workers is not None and int(workers) <= 0:
            raise ValueError("workers must be a strictly positive integer")
        patterns = {}
        for name in ("grep", "ignore"):
            if values[name] is not None:
                try:
                    patterns[name] = re.compile(values[name])
                except re.error as e:
                    raise ValueError("Invalid %s pattern %r: %s" % (
                        name, values[name], e))
        self.__dict__["_values"] = values
        self.__dict__["_patterns"] = patterns


    def __getattr__(self, name):
        try:
            return self.__dict__["_values"][name]
        except KeyError:
            raise AttributeError(name)


    def __setattr__(self, name, value):
        raise AttributeError("%s is immutable, use derive()" % (
            self.__class__.__name__,))


    def __repr__(self):
        return "<RunOptions %r>" % (self._values,)


    def derive(self, **overrides):
        """
        Return a new snapshot with C{overrides} applied; this one is left
        untouched.

        @raise ValueError: if an override is unknown or invalid.
        """
        values = dict(self._values)
        values.update(overrides)
        return self.__class__(**values)


    def asDict(self):
        """
        Return a JSON-serializable C{dict} of this snapshot.
        """
        values = dict(self._values)
        values["paths"] = list(values["paths"])
        values["extensions"] = list(values["extensions"])
        return values


    def fromDict(cls, values):
        """
        Build a snapshot from the result of L{asDict}.
        """
        return cls(**dict((str(k), v) for (k, v) in values.items()))

    fromDict = classmethod(fromDict)


    def ignores(self, name):
        """
        Whether an entry found while expanding a directory is excluded.
        """
        pattern = self._patterns.get("ignore")
        return pattern is not None and pattern.search(name) is not None


    def greps(self, name):
        """
        Whether a file found while expanding a directory is included.
        """
        pattern = self._patterns.get("grep")
        return pattern is None or pattern.search(name) is not None


    def workerCap(self, cpuCount=None):
        """
        The most workers a run may use.
        """
        if not self.multiProcess:
            return 1
        if self.workers is not None:
            return int(self.workers)
        if cpuCount is None:
            cpuCount = os.cpu_count()
        return cpuCount or 1



class ExamOptions(Options):
    """
    Command line options for exam.
    """

    synopsis = "exam [options] [[file|directory]...]"

    optFlags = [
        ["watch", "w", "When changes are made, re-run the tests"],
        ["multi-process", "m", "Distribute the tests among CPUs"],
        ["flat", "f", "Do not recurse below the given directories"],
        ["timestamp", "T", "Show a timestamp after the report"],
        ]

    optParameters = [
        ["reporter", "R", "console", "The reporter to use"],
        ["grep", "g", None, "Only run files matching a pattern"],
        ["ignore", "i", None, "Ignore entries matching a pattern"],
        ["workers", "n", None, "Number of local workers to run"],
        ["engine", "e", RunOptions.defaults["engine"],
         "Fully qualified name of the execution engine"],
        ["dir", "d", None,
         "The project directory, the current directory by default"],
        ["logfile", "l", os.path.join(".cache", "exam.log"),
         "Log file, relative to the project directory"],
        ]

    def __init__(self):
        Options.__init__(self)
        self["paths"] = []


    def opt_version(self):
        """
        Display the exam version and exit.
        """
        print(exam.__version__)
        sys.exit(0)

    opt_V = opt_version


    def opt_workers(self, number):
        """
        Number of local workers to run, a strictly positive integer.
        """
        try:
            number = int(number)
        except ValueError:
            raise UsageError("argument to --workers must be an integer")
        if number <= 0:
            raise UsageError(
                "argument to --workers must be a strictly positive integer")
        self["workers"] = number


    def parseArgs(self, *paths):
        self["paths"].extend(paths)


    def postOptions(self):
        if self["dir"] is None:
            self["dir"] = os.getcwd()
        if not self["paths"]:
            self["paths"] = ["test"]
        if self["reporter"] not in reporters:
            raise UsageError("Unknown reporter %r, expected one of %s" % (
                self["reporter"], ", ".join(sorted(reporters))))
        for name in ("grep", "ignore"):
            if self[name] is not None:
                try:
                    re.compile(self[name])
                except re.error as e:
                    raise UsageError("Invalid --%s pattern: %s" % (name, e))


    def toRunOptions(self, **overrides):
        """
        Return the L{RunOptions} snapshot described by these options.
        """
        values = {
            "paths": self["paths"],
            "dir": self["dir"],
            "grep": self["grep"],
            "ignore": self["ignore"],
            "flat": bool(self["flat"]),
            "reporter": self["reporter"],
            "multiProcess": bool(self["multi-process"]),
            "watch": bool(self["watch"]),
            "timestamp": bool(self["timestamp"]),
            "workers": self["workers"],
            "engine": self["engine"],
            }
        values.update(overrides)
        return RunOptions(**values)
