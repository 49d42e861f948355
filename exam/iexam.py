# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Interfaces for the collaborators of the exam coordinator.
"""

from zope.interface import Interface, Attribute



class IWorker(Interface):
    """
    A handle on one logical worker, given exactly one bucket per run.
    """

    def run(units, options):
        """
        Run every unit of a bucket.

        @param units: the unit paths to run, in order.
        @type units: C{list} of C{str}

        @param options: the options of the current run.
        @type options: L{exam.options.RunOptions}

        @return: a L{Deferred} which fires with exactly one worker message
            once the whole bucket is done.
        """



class IEngine(Interface):
    """
    Runs a single unit and decides what passed, failed, was skipped or
    stubbed.
    """

    def runUnit(path, options):
        """
        Run the unit at C{path}.

        @return: a C{dict} with C{passed}, C{failed}, C{skipped}, C{stubbed}
            and C{hasOnly} keys, and optionally C{errors} (a C{list} of
            C{{title, message, trace}} records) and C{time} (milliseconds).
        """



class IReporter(Interface):
    """
    Presents the outcome of a run.
    """

    stream = Attribute("The file-like object the reporter writes to.")

    def start():
        """
        Called when a run begins.
        """


    def all(result):
        """
        Called once with the aggregated L{exam.aggregator.RunResult}.
        """


    def timestamp():
        """
        Write the current time after the report.
        """
