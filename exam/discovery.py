# -*- test-case-name: exam.test.test_discovery -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Find the units of a run by walking the configured paths.

Every filesystem call goes through an I{fsCall}: a callable taking a function
and its arguments and returning a L{Deferred}.  The coordinator uses
L{twisted.internet.threads.deferToThread} so the reactor never blocks on the
disk; tests use L{maybeDeferred}.  All filesystem calls of a walk are
joined with L{gatherResults}, which is the only point where discovery is
known to be complete.
"""

import json
import os

from twisted.internet.defer import gatherResults, maybeDeferred, succeed
from twisted.python import log
from twisted.python.filepath import FilePath

OVERRIDE_FILENAME = ".exam.json"
DEFAULT_EXTENSION = ".py"
METADATA_EXTENSION = ".json"
FAILURE_TITLE = "Exam"



def _isDirectory(path):
    """
    Raise L{OSError} if C{path} doesn't exist, otherwise say whether it is a
    directory.
    """
    path.restat()
    return path.isdir()



def _listDirectory(path):
    return sorted(path.listdir())



def loadOverride(path):
    """
    Read a directory-local override file.

    @param path: the override file.
    @type path: L{FilePath}

    @return: the option values it overrides.
    @rtype: C{dict}

    @raise ValueError: if the file isn't a JSON object.
    """
    overrides = json.loads(path.getContent().decode("utf-8"))
    if not isinstance(overrides, dict):
        raise ValueError("%s must contain a JSON object" % (path.path,))
    return dict((str(k), v) for (k, v) in overrides.items())



def isUnit(path, options):
    """
    Whether a file is a runnable unit: its extension must be registered and
    must not be the metadata extension.
    """
    extension = path.splitext()[1]
    return (extension in options.extensions
            and extension != METADATA_EXTENSION)



class Discovery(object):
    """
    One walk over the paths of a run.

    @ivar options: the options the walk starts with.
    @type options: L{exam.options.RunOptions}

    @ivar fsCall: the callable used for filesystem calls.

    @ivar failures: the L{Failure}s met while walking.
    @type failures: C{list}
    """

    def __init__(self, options, fsCall=maybeDeferred):
        self.options = options
        self.fsCall = fsCall
        self.failures = []


    def discover(self):
        """
        Walk every root path of the options.

        @return: a L{Deferred} firing with the unit paths, without duplicates,
            in walk order.  Failures never make it fail; they are collected
            in L{failures}.
        """
        reads = [
            self._read(FilePath(os.path.join(self.options.dir, path)),
                       self.options, False)
            for path in self.options.paths]
        d = gatherResults(reads, consumeErrors=True)
        d.addCallback(self._unique)
        return d


    def _unique(self, results):
        paths = []
        seen = set()
        for result in results:
            for path in result:
                if path not in seen:
                    seen.add(path)
                    paths.append(path)
        return paths


    def _fail(self, failure, path):
        log.msg("Discovery failed for %s: %s" % (
            path.path, failure.getErrorMessage()))
        self.failures.append(failure)
        return []


    def _read(self, path, options, isDeep, retried=False):
        d = self.fsCall(_isDirectory, path)
        d.addCallbacks(
            self._found, self._notFound,
            callbackArgs=(path, options, isDeep),
            errbackArgs=(path, options, isDeep, retried))
        return d


    def _notFound(self, failure, path, options, isDeep, retried):
        if not retried and path.splitext()[1] not in options.extensions:
            return self._read(path.siblingExtension(DEFAULT_EXTENSION),
                              options, isDeep, True)
        return self._fail(failure, path)


    def _found(self, isDirectory, path, options, isDeep):
        if isDirectory:
            if options.flat and isDeep:
                return []
            return self._expand(path, options)
        if isUnit(path, options) and (
                not isDeep or options.greps(path.basename())):
            return [path.path]
        return []


    def _expand(self, path, options):
        d = self.fsCall(_listDirectory, path)
        d.addCallback(self._expanded, path, options)
        d.addErrback(self._fail, path)
        return d


    def _expanded(self, names, path, options):
        if OVERRIDE_FILENAME in names:
            override = path.child(OVERRIDE_FILENAME)
            d = self.fsCall(loadOverride, override)
            d.addCallback(lambda overrides: options.derive(**overrides))
            d.addErrback(self._overrideFailed, override, options)
        else:
            d = succeed(options)
        d.addCallback(self._readChildren, path, names)
        return d


    def _overrideFailed(self, failure, override, options):
        self._fail(failure, override)
        return options


    def _readChildren(self, options, path, names):
        reads = [self._read(path.child(name), options, True)
                 for name in names
                 if name != OVERRIDE_FILENAME and not options.ignores(name)]
        d = gatherResults(reads, consumeErrors=True)
        d.addCallback(lambda results: [p for paths in results for p in paths])
        return d
