# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

from exam.runner import run

run()
