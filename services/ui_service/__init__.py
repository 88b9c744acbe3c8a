"""
UI service - the root shell and the Streamlit screens it routes to.
"""

from .actions import ActionState, ConfirmationGate, run_action, run_sync
from .root_shell import RootShell, ShellPhase

__all__ = [
    'ActionState',
    'ConfirmationGate',
    'run_action',
    'run_sync',
    'RootShell',
    'ShellPhase',
]
