# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Tests for L{exam.engine}.
"""

import sys

from zope.interface.verify import verifyObject

from twisted.python.filepath import FilePath
from twisted.trial.unittest import TestCase

from exam.engine import TrialEngine, only
from exam.iexam import IEngine
from exam.options import RunOptions


MIXED = b"""
from twisted.trial.unittest import TestCase

class MixedTests(TestCase):
    def test_pass(self):
        pass

    def test_fail(self):
        self.fail("wrong")

    def test_skip(self):
        pass
    test_skip.skip = "not now"

    def test_todo(self):
        self.fail("later")
    test_todo.todo = "later"
"""

PASSING = b"""
from twisted.trial.unittest import TestCase

class ChangingTests(TestCase):
    def test_it(self):
        self.assertEqual(1, 1)
"""

# A different size from PASSING, so cached bytecode is never reused.
FAILING = b"""
from twisted.trial.unittest import TestCase

class ChangingTests(TestCase):
    def test_it(self):
        self.assertEqual(1, 2, "the unit changed")
"""

EXCLUSIVE = b"""
from twisted.trial.unittest import TestCase

from exam.engine import only

class ExclusiveTests(TestCase):
    @only
    def test_chosen(self):
        pass

    def test_fail(self):
        self.fail("wrong")

    def test_other(self):
        pass
"""



class TrialEngineTestCase(TestCase):
    """
    Tests for L{TrialEngine}.
    """

    def setUp(self):
        self.directory = FilePath(self.mktemp())
        self.directory.makedirs()
        self.engine = TrialEngine()


    def unit(self, name, content):
        """
        Write a unit and forget its module once the test is over.
        """
        path = self.directory.child(name + ".py")
        path.setContent(content)
        self.addCleanup(sys.modules.pop, name, None)
        return path.path


    def test_interface(self):
        self.assertTrue(verifyObject(IEngine, self.engine))


    def test_counts(self):
        """
        Passes, failures, skips and todos are counted.
        """
        path = self.unit("exam_engine_mixed", MIXED)
        outcome = self.engine.runUnit(path, RunOptions())
        self.assertEqual(
            (1, 1, 1, 1, False),
            (outcome["passed"], outcome["failed"], outcome["skipped"],
             outcome["stubbed"], outcome["hasOnly"]))
        self.assertEqual(1, len(outcome["errors"]))
        self.assertTrue(outcome["errors"][0]["title"].startswith("FAIL:"))
        self.assertIn("wrong", outcome["errors"][0]["message"])


    def test_only(self):
        """
        Tests marked with L{only} run alone; the others count as skipped.
        """
        path = self.unit("exam_engine_exclusive", EXCLUSIVE)
        outcome = self.engine.runUnit(path, RunOptions())
        self.assertEqual(
            (1, 0, 2, True),
            (outcome["passed"], outcome["failed"], outcome["skipped"],
             outcome["hasOnly"]))
        self.assertEqual([], outcome["errors"])


    def test_rerunSeesChanges(self):
        """
        Running a unit again runs its current code, not the module imported
        by the previous run.
        """
        path = self.unit("exam_engine_changing", PASSING)
        first = self.engine.runUnit(path, RunOptions())
        FilePath(path).setContent(FAILING)
        second = self.engine.runUnit(path, RunOptions())
        self.assertEqual((1, 0), (first["passed"], first["failed"]))
        self.assertEqual((0, 1), (second["passed"], second["failed"]))


    def test_missingUnit(self):
        """
        A unit which can't be loaded raises.
        """
        self.assertRaises(
            Exception, self.engine.runUnit,
            self.directory.child("nothere.py").path, RunOptions())



class OnlyTestCase(TestCase):

    def test_marks(self):
        def f():
            pass
        self.assertIdentical(f, only(f))
        self.assertTrue(f.only)
