"""
devsetup: idempotent provisioning of a LunarVim development toolchain.
"""

from devsetup.config import SCRIPT_VERSION

__version__ = SCRIPT_VERSION
