"""
Installation and removal workflow.

The step classes live in ``lampstack.installer.components`` and register
themselves with ``ComponentRegistry`` when imported.
"""
