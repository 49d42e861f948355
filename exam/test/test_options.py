# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Tests for exam options management.
"""

import os

from twisted.python.usage import UsageError
from twisted.trial.unittest import TestCase

from exam.options import ExamOptions, RunOptions



class RunOptionsTestCase(TestCase):
    """
    Tests for L{RunOptions}.
    """

    def test_defaults(self):
        """
        Options not given take their default value.
        """
        options = RunOptions(paths=["spec"])
        self.assertEqual(("spec",), options.paths)
        self.assertEqual("EXAM", options.runId)
        self.assertFalse(options.flat)
        self.assertIn(".py", options.extensions)


    def test_immutable(self):
        """
        Options can't be changed in place.
        """
        options = RunOptions()
        self.assertRaises(AttributeError, setattr, options, "flat", True)


    def test_derive(self):
        """
        L{RunOptions.derive} returns a changed copy and leaves the original
        untouched.
        """
        options = RunOptions(grep="^test_")
        derived = options.derive(flat=True)
        self.assertTrue(derived.flat)
        self.assertFalse(options.flat)
        self.assertEqual("^test_", derived.grep)


    def test_unknownOption(self):
        """
        Unknown option names are rejected.
        """
        self.assertRaises(ValueError, RunOptions, colour=True)
        self.assertRaises(ValueError, RunOptions().derive, colour=True)


    def test_invalidPattern(self):
        """
        Patterns which aren't valid regular expressions are rejected.
        """
        self.assertRaises(ValueError, RunOptions, grep="(")
        self.assertRaises(ValueError, RunOptions, ignore="[")


    def test_invalidWorkers(self):
        """
        The worker cap must be strictly positive.
        """
        self.assertRaises(ValueError, RunOptions, workers=0)


    def test_dictRoundTrip(self):
        """
        L{RunOptions.fromDict} rebuilds what L{RunOptions.asDict} made.
        """
        options = RunOptions(paths=["a", "b"], ignore="fixtures", flat=True)
        self.assertEqual(options, RunOptions.fromDict(options.asDict()))
        self.assertEqual(["a", "b"], options.asDict()["paths"])


    def test_ignoresAndGreps(self):
        """
        C{ignore} excludes matching names; C{grep}, when set, only includes
        matching names.
        """
        options = RunOptions(grep="^test_", ignore="fixture")
        self.assertTrue(options.ignores("fixtures"))
        self.assertFalse(options.ignores("test_a.py"))
        self.assertTrue(options.greps("test_a.py"))
        self.assertFalse(options.greps("helper.py"))
        self.assertTrue(RunOptions().greps("helper.py"))
        self.assertFalse(RunOptions().ignores("helper.py"))


    def test_workerCap(self):
        """
        One worker without multi-process mode, else the C{workers} option,
        else the CPU count.
        """
        self.assertEqual(1, RunOptions(workers=4).workerCap(8))
        self.assertEqual(4, RunOptions(
            multiProcess=True, workers=4).workerCap(8))
        self.assertEqual(8, RunOptions(multiProcess=True).workerCap(8))
        self.assertEqual(1, RunOptions(multiProcess=True).workerCap(0))



class ExamOptionsTestCase(TestCase):
    """
    Tests for L{ExamOptions}.
    """

    def setUp(self):
        """
        Build an option object to be used in the tests.
        """
        self.options = ExamOptions()


    def test_defaultPaths(self):
        """
        Without positional arguments the C{test} directory is run.
        """
        self.options.parseOptions([])
        self.assertEqual(["test"], self.options["paths"])


    def test_defaultDirectory(self):
        """
        Without C{--dir} the project is the directory current at parsing
        time, not at import time.
        """
        self.patch(os, "getcwd", lambda: "/elsewhere")
        self.options.parseOptions([])
        self.assertEqual("/elsewhere", self.options["dir"])


    def test_directory(self):
        self.options.parseOptions(["--dir", "/project"])
        self.assertEqual("/project", self.options["dir"])


    def test_paths(self):
        """
        Positional arguments are the root paths.
        """
        self.options.parseOptions(["spec", "test/test_a.py"])
        self.assertEqual(["spec", "test/test_a.py"], self.options["paths"])


    def test_flags(self):
        """
        Flags end up in the L{RunOptions} snapshot.
        """
        self.options.parseOptions(
            ["-m", "-f", "-T", "-n", "3", "-g", "^test_", "-d", "/project"])
        options = self.options.toRunOptions()
        self.assertTrue(options.multiProcess)
        self.assertTrue(options.flat)
        self.assertTrue(options.timestamp)
        self.assertFalse(options.watch)
        self.assertEqual(3, options.workers)
        self.assertEqual("^test_", options.grep)
        self.assertEqual("/project", options.dir)


    def test_workers(self):
        """
        The worker count must be a strictly positive integer.
        """
        self.assertRaises(UsageError, self.options.parseOptions,
                          ["--workers", "0"])
        self.assertRaises(UsageError, self.options.parseOptions,
                          ["--workers", "many"])


    def test_unknownReporter(self):
        """
        The reporter must be registered.
        """
        self.assertRaises(UsageError, self.options.parseOptions,
                          ["--reporter", "nope"])


    def test_invalidPattern(self):
        """
        Invalid patterns are usage errors.
        """
        self.assertRaises(UsageError, self.options.parseOptions,
                          ["--ignore", "("])


    def test_overrides(self):
        """
        L{ExamOptions.toRunOptions} applies the given overrides.
        """
        self.options.parseOptions([])
        options = self.options.toRunOptions(runId="WATCH")
        self.assertEqual("WATCH", options.runId)
