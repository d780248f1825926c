"""
Dynamic Function Loader for phase functions
Resolves ``module:function`` references, or paths to Python files, into callables
"""

import importlib
import importlib.util
import os
import sys
import logging

from .errors import FunctionLoadError

logger = logging.getLogger(__name__)


class FunctionLoader:
    """Loads phase functions from an importable module or a Python file"""

    def __init__(self, module_ref: str):
        """
        Initialize the function loader

        Args:
            module_ref: Dotted module name, or path to a ``.py`` file
        """
        self.module_ref = module_ref
        self.module = None

    def load_module(self):
        """
        Import the referenced module

        Returns:
            The loaded module object

        Raises:
            FileNotFoundError: If module_ref is a path that doesn't exist
            FunctionLoadError: If the module cannot be imported
        """
        if self.module_ref.endswith('.py'):
            self.module = self._load_file()
        else:
            try:
                self.module = importlib.import_module(self.module_ref)
            except ImportError as e:
                raise FunctionLoadError(f"Cannot import {self.module_ref}: {e}") from e
        return self.module

    def _load_file(self):
        if not os.path.exists(self.module_ref):
            raise FileNotFoundError(f"Phase function file not found: {self.module_ref}")

        name = "phase_" + os.path.splitext(os.path.basename(self.module_ref))[0]
        spec = importlib.util.spec_from_file_location(name, self.module_ref)
        if spec is None or spec.loader is None:
            raise FunctionLoadError(f"Failed to load phase function file: {self.module_ref}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        spec.loader.exec_module(module)
        logger.info(f"Loaded phase functions from {self.module_ref}")
        return module

    def get_function(self, name: str):
        """
        Get a named function from the module, loading it first if needed

        Raises:
            FunctionLoadError: If the module doesn't define a callable ``name``
        """
        if not self.module:
            self.load_module()

        function = getattr(self.module, name, None)
        if not callable(function):
            raise FunctionLoadError(f"Module {self.module_ref} must define '{name}'")
        return function


def resolve_function(ref):
    """
    Turn a function reference into a callable

    Args:
        ref: A callable, a ``"module:function"`` string, or a
            ``(module, function)`` pair

    Raises:
        FunctionLoadError: If ref has none of these forms or does not resolve
    """
    if callable(ref):
        return ref
    if isinstance(ref, str):
        module_ref, sep, name = ref.rpartition(':')
        if not sep or not module_ref or not name:
            raise FunctionLoadError(f"Expected 'module:function', got {ref!r}")
    elif isinstance(ref, (tuple, list)) and len(ref) == 2:
        module_ref, name = ref
    else:
        raise FunctionLoadError(f"Unsupported function reference: {ref!r}")
    return FunctionLoader(module_ref).get_function(name)
