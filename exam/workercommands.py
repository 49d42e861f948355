# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Commands for telling a worker to run its bucket.
"""

from twisted.protocols.amp import Boolean, Command

from exam.managercommands import JSON



class Run(Command):
    """
    Run every unit of a bucket with the given options.
    """
    arguments = [(b"units", JSON()),
                 (b"options", JSON())]
    response = [(b"success", Boolean())]
