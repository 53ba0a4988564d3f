# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI exit codes.

BENCH_FAILURE shares its value with USER_ERROR: a run whose table contains an
error or timeout cell exits 1, the same as a bad mode token. Interrupts exit
with 128 + the signal number.
"""

SUCCESS: int = 0
USER_ERROR: int = 1
BENCH_FAILURE: int = 1
CONFIG_ERROR: int = 2
RUNTIME_ERROR: int = 3
INTERRUPTED: int = 130
TERMINATED: int = 143
