"""Automation keeper - drives check_trigger()/execute_trigger()."""

from autoraffle.keeper.automation import AutomationKeeper

__all__ = ["AutomationKeeper"]
