"""
Installer steps.

Each sub-package provides one step (a ``BaseComponent`` subclass) for a
single part of the stack. Importing a step module registers it with
``ComponentRegistry``.
"""

import importlib
import logging
import pkgutil
from typing import List, Optional

module_logger = logging.getLogger(__name__)


def load_all_components(logger: Optional[logging.Logger] = None) -> List[str]:
    """
    Import every step module below this package so that all steps are
    registered.

    Returns:
        The imported module names.
    """
    logger_to_use = logger or module_logger
    imported: List[str] = []
    for module_info in pkgutil.walk_packages(__path__, prefix=f"{__name__}."):
        if module_info.ispkg:
            continue
        importlib.import_module(module_info.name)
        imported.append(module_info.name)
        logger_to_use.debug(f"Imported installer module: {module_info.name}")
    return imported
