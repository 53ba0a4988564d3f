# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""bendbench: benchmark harness for Bend and HVM toolchains."""

__version__ = "0.1.0"
