# -*- test-case-name: exam.test.test_partition -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Split units into one bucket per worker, using the timing manifest to spread
slow units out.
"""



def reorder(units, manifest):
    """
    Order units slowest first according to C{manifest}.

    Units found in the manifest come first, in manifest order.  Units the
    manifest has never seen follow in discovery order, as if they had run
    instantly last time.

    @param units: the discovered unit paths.
    @type units: C{list} of C{str}

    @param manifest: timing data of the previous run, or C{None}.
    @type manifest: L{exam.manifest.Manifest}

    @rtype: C{list} of C{str}
    """
    found = set(units)
    ordered = []
    seen = set()
    if manifest is not None:
        for path in manifest.paths():
            if path in found and path not in seen:
                seen.add(path)
                ordered.append(path)
    for path in units:
        if path not in seen:
            seen.add(path)
            ordered.append(path)
    return ordered



def partition(units, manifest, workerCap):
    """
    Assign every unit to exactly one of C{min(len(units), workerCap)}
    buckets.

    The ordered units are dealt out in groups of one unit per bucket, the
    direction changing with every group, so that the slowest unit of a
    group shares a bucket with the fastest unit of the next one.  This only
    approximates an even split of the total time.

    @param workerCap: the most buckets to make.
    @type workerCap: C{int}

    @raise ValueError: if C{workerCap} is not strictly positive.

    @rtype: C{list} of C{list} of C{str}
    """
    if workerCap < 1:
        raise ValueError("workerCap must be a strictly positive integer")
    ordered = reorder(units, manifest)
    count = min(len(ordered), workerCap)
    buckets = [[] for i in range(count)]
    reverse = True
    for index, path in enumerate(ordered):
        mod = index % count
        if not mod:
            reverse = not reverse
        if reverse:
            buckets[count - 1 - mod].append(path)
        else:
            buckets[mod].append(path)
    return buckets
