# -*- test-case-name: exam.test.test_watch -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Re-run the suite whenever something changes below the project directory.
"""

from twisted.internet import inotify
from twisted.internet.task import deferLater
from twisted.python import log
from twisted.python.filepath import FilePath

IGNORED = frozenset([
    ".cache", ".git", "htmlcov", ".venv", "node_modules", "__pycache__"])

WATCH_MASK = (inotify.IN_MODIFY | inotify.IN_CREATE | inotify.IN_DELETE
              | inotify.IN_MOVED_FROM | inotify.IN_MOVED_TO)

# Long enough to ignore the manifest the run just wrote.
REARM_DELAY = 0.099



class WatchController(object):
    """
    Trigger a run of an L{exam.runner.ExamRunner} on change, unless one is
    already active.  Changes seen during a run are dropped, not queued.

    @ivar watching: the paths of the directories already watched.
    @type watching: C{set}

    @ivar active: whether a run is active or has just finished.
    """

    def __init__(self, runner, root, notifier=None, clock=None):
        if clock is None:
            from twisted.internet import reactor as clock
        self.runner = runner
        self.root = FilePath(root)
        self.notifier = notifier
        self.clock = clock
        self.watching = set()
        self.active = False


    def start(self):
        """
        Start watching and trigger the first run.
        """
        if self.notifier is None:
            self.notifier = inotify.INotify()
            self.notifier.startReading()
        return self.trigger()


    def directories(self, path=None):
        """
        Yield C{path} and every directory below it, skipping ignored ones.
        """
        if path is None:
            path = self.root
        yield path
        for child in sorted(path.children()):
            if child.basename() in IGNORED or not child.isdir():
                continue
            for directory in self.directories(child):
                yield directory


    def watchTree(self):
        """
        Watch every directory of the tree not watched yet.
        """
        for directory in self.directories():
            if directory.path not in self.watching:
                self.watching.add(directory.path)
                self.notifier.watch(directory, mask=WATCH_MASK,
                                    callbacks=[self.changed])


    def changed(self, ignored, path, mask):
        """
        Called by the notifier when something changed in a watched directory.
        """
        if path.basename() in IGNORED:
            return
        if self.active:
            log.msg("Ignoring change of %s during a run" % (path.path,))
            return
        self.trigger()


    def trigger(self):
        """
        Start a run, re-arming once it is over.
        """
        self.active = True
        self.watchTree()
        d = self.runner.start()
        d.addErrback(log.err, "Run failed")
        d.addCallback(lambda ignored: deferLater(
            self.clock, REARM_DELAY, self._rearm))
        return d


    def _rearm(self):
        self.active = False
