# jsonwire/lib/__init__.py
#
# Polling routines shared by Session and Element.

from .find_displayed import find_displayed
from .wait_for_deleted import wait_for_deleted

__all__ = [
    "find_displayed",
    "wait_for_deleted",
]
