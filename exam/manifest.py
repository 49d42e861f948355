# -*- test-case-name: exam.test.test_manifest -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
The timing manifest: how long each unit took the last time it ran.

Reading and writing are best-effort.  A missing or damaged manifest only
costs a less balanced run, so neither operation ever raises.
"""

import json

from twisted.python import log
from twisted.python.failure import Failure
from twisted.python.filepath import FilePath

CACHE_DIRECTORY = ".cache"
MANIFEST_FILENAME = "exam-manifest.json"



class Manifest(object):
    """
    An ordered sequence of C{{"path": ..., "time": ...}} records.

    @ivar files: the records, slowest first once sorted.
    @type files: C{list} of C{dict}
    """

    def __init__(self, files=()):
        self.files = [{"path": f["path"], "time": f["time"]} for f in files]


    def __eq__(self, other):
        if not isinstance(other, Manifest):
            return NotImplemented
        return self.files == other.files


    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result


    def __repr__(self):
        return "<Manifest %r>" % (self.files,)


    def fromTimes(cls, times):
        """
        Build a manifest from a mapping of unit paths to milliseconds.
        """
        return cls({"path": path, "time": time}
                   for (path, time) in times.items()).sorted()

    fromTimes = classmethod(fromTimes)


    def sorted(self):
        """
        Return a copy of this manifest sorted descending by time.
        """
        return Manifest(sorted(self.files, key=lambda f: -f["time"]))


    def paths(self):
        """
        Return the unit paths of this manifest, in order.
        """
        return [f["path"] for f in self.files]


    def asDict(self):
        return {"files": [dict(f) for f in self.files]}



def manifestPath(directory):
    """
    Return the L{FilePath} of the manifest for a project directory.
    """
    return FilePath(directory).child(CACHE_DIRECTORY).child(MANIFEST_FILENAME)



def _validate(content):
    files = content["files"]
    if not isinstance(files, list):
        raise ValueError("manifest files must be a list")
    for record in files:
        if not isinstance(record["path"], str):
            raise ValueError("manifest path must be a string")
        if (isinstance(record["time"], bool)
                or not isinstance(record["time"], (int, float))):
            raise ValueError("manifest time must be a number")
    return files



def load(path):
    """
    Read a manifest, returning an empty one if it can't be read.

    @param path: where the manifest lives.
    @type path: L{FilePath}

    @rtype: L{Manifest}
    """
    try:
        content = json.loads(path.getContent().decode("utf-8"))
        return Manifest(_validate(content))
    except (IOError, OSError, ValueError, TypeError, KeyError):
        log.msg("Ignoring unreadable manifest %s: %s" % (
            path.path, Failure().getErrorMessage()))
        return Manifest()



def save(path, manifest):
    """
    Write a manifest sorted slowest first, creating its directory if needed.

    @param path: where the manifest lives.
    @type path: L{FilePath}

    @param manifest: the manifest to write.
    @type manifest: L{Manifest}

    @return: C{True} if the manifest was written, C{False} otherwise.
    """
    content = json.dumps(manifest.sorted().asDict(), indent=2)
    try:
        parent = path.parent()
        if not parent.isdir():
            parent.makedirs()
        path.setContent(content.encode("utf-8"))
    except (IOError, OSError):
        log.msg("Could not write manifest %s: %s" % (
            path.path, Failure().getErrorMessage()))
        return False
    return True
