# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Tests for L{exam.discovery}.
"""

import json

from twisted.python.filepath import FilePath
from twisted.trial.unittest import TestCase

from exam.discovery import Discovery, isUnit, loadOverride
from exam.options import RunOptions



class DiscoveryTestCase(TestCase):
    """
    Tests for L{Discovery}, probing synchronously.
    """

    def setUp(self):
        """
        Build a project::

            test/a.py
            test/b.py
            test/data.json
            test/notes.txt
            test/sub/c.py
            test/sub/test_d.py
        """
        self.root = FilePath(self.mktemp())
        self.test = self.root.child("test")
        self.sub = self.test.child("sub")
        self.sub.makedirs()
        for path in [self.test.child("a.py"), self.test.child("b.py"),
                     self.test.child("data.json"),
                     self.test.child("notes.txt"),
                     self.sub.child("c.py"), self.sub.child("test_d.py")]:
            path.setContent(b"")


    def discover(self, **kwargs):
        kwargs.setdefault("dir", self.root.path)
        discovery = Discovery(RunOptions(**kwargs))
        return discovery, self.successResultOf(discovery.discover())


    def test_recursive(self):
        """
        Directories are walked recursively, in sorted order, keeping only
        registered extensions.
        """
        discovery, units = self.discover()
        self.assertEqual([self.test.child("a.py").path,
                          self.test.child("b.py").path,
                          self.sub.child("c.py").path,
                          self.sub.child("test_d.py").path], units)
        self.assertEqual([], discovery.failures)


    def test_flat(self):
        """
        In flat mode only the directories given as roots are expanded.
        """
        discovery, units = self.discover(flat=True)
        self.assertEqual([self.test.child("a.py").path,
                          self.test.child("b.py").path], units)


    def test_defaultExtension(self):
        """
        A missing path without an extension is retried with C{.py}.
        """
        discovery, units = self.discover(paths=["test/a"])
        self.assertEqual([self.test.child("a.py").path], units)
        self.assertEqual([], discovery.failures)


    def test_missing(self):
        """
        A missing root is recorded as a failure and doesn't stop the walk.
        """
        discovery, units = self.discover(paths=["nope", "test/a.py"])
        self.assertEqual([self.test.child("a.py").path], units)
        self.assertEqual(1, len(discovery.failures))
        self.assertTrue(discovery.failures[0].check(OSError))


    def test_duplicates(self):
        """
        A unit reached through several roots is kept once, at its first
        position.
        """
        discovery, units = self.discover(paths=["test/b.py", "test"])
        self.assertEqual([self.test.child("b.py").path,
                          self.test.child("a.py").path,
                          self.sub.child("c.py").path,
                          self.sub.child("test_d.py").path], units)


    def test_ignore(self):
        """
        Entries matching C{ignore} are skipped.
        """
        discovery, units = self.discover(ignore="^sub$|^b")
        self.assertEqual([self.test.child("a.py").path], units)


    def test_grep(self):
        """
        C{grep} filters the files found below the roots, but never a root.
        """
        discovery, units = self.discover(
            paths=["test", "test/b.py"], grep="^test_")
        self.assertEqual([self.sub.child("test_d.py").path,
                          self.test.child("b.py").path], units)


    def test_override(self):
        """
        An override file applies to its directory and below, not to its
        siblings.
        """
        self.sub.child(".exam.json").setContent(
            json.dumps({"ignore": "^c"}).encode("utf-8"))
        discovery, units = self.discover()
        self.assertEqual([self.test.child("a.py").path,
                          self.test.child("b.py").path,
                          self.sub.child("test_d.py").path], units)


    def test_overrideFlat(self):
        """
        An override file may stop the recursion below its directory.
        """
        deeper = self.sub.child("deeper")
        deeper.makedirs()
        deeper.child("e.py").setContent(b"")
        self.sub.child(".exam.json").setContent(b'{"flat": true}')
        discovery, units = self.discover()
        self.assertNotIn(deeper.child("e.py").path, units)
        self.assertIn(self.sub.child("c.py").path, units)


    def test_malformedOverride(self):
        """
        A malformed override file is a failure, and the inherited options
        are used instead.
        """
        self.sub.child(".exam.json").setContent(b'{"colour": true}')
        discovery, units = self.discover()
        self.assertIn(self.sub.child("c.py").path, units)
        self.assertEqual(1, len(discovery.failures))
        self.assertTrue(discovery.failures[0].check(ValueError))



class HelpersTestCase(TestCase):
    """
    Tests for the helpers of L{exam.discovery}.
    """

    def test_isUnit(self):
        options = RunOptions(extensions=[".py", ".json"])
        self.assertTrue(isUnit(FilePath("a.py"), options))
        self.assertFalse(isUnit(FilePath("a.json"), options))
        self.assertFalse(isUnit(FilePath("a.txt"), options))


    def test_loadOverrideNotObject(self):
        """
        An override file must contain a JSON object.
        """
        path = FilePath(self.mktemp())
        path.setContent(b"[1, 2]")
        self.assertRaises(ValueError, loadOverride, path)
