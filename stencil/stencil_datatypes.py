"""
Defines the core data types shared by the stencil front end.

This module provides the prototype-chained Scope used as the program's
global namespace and the error kinds raised while bootstrapping a run.
"""

from typing import Dict, Any, Optional, List
import collections.abc


# =================================================================
# Errors
# =================================================================

class StencilError(Exception):
    """Base class for bootstrap failures; carries the process exit code."""
    exit_code = 1


class UsageError(StencilError):
    """The command line could not be parsed."""


class SourceConflict(StencilError):
    """Both -i and -s were given. Reported, never raised."""
    def __init__(self):
        super().__init__("Options -i and -s are exclusive")


class SourceOpenFailed(StencilError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to open {path}: {reason}")
        self.path = path
        self.reason = reason


class NoSourceSpecified(StencilError):
    def __init__(self):
        super().__init__("One of -i or -s is required")


class StdinAlreadyConsumed(StencilError):
    def __init__(self):
        super().__init__("Can read from stdin only once")


class InvalidConfigFormat(StencilError):
    """A -e/-E payload is not a JSON object."""
    def __init__(self, option: Optional[str] = None, detail: Optional[str] = None):
        if option:
            msg = f"Option -{option} must point to a valid JSON object"
        else:
            msg = detail or "Invalid JSON object"
        super().__init__(msg)
        self.option = option
        self.detail = detail


class CompileError(StencilError):
    exit_code = 2

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ExecuteError(StencilError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# =================================================================
# Scope
# =================================================================

class Scope:
    """A variable-resolution object with an optional prototype parent.

    Lookups that miss the local bindings are delegated to the parent,
    so a chain of scopes behaves as one namespace where the innermost
    binding wins. Writes and deletes only ever touch the local bindings.
    """
    def __init__(self, parent: Optional['Scope'] = None):
        self.bindings: Dict[str, Any] = {}
        self._parent = parent

    def __setitem__(self, key: str, value: Any):
        if not isinstance(key, str):
            raise TypeError(f"Scope key must be a str, not {type(key)}")
        self.bindings[key] = value

    def __getitem__(self, key: str) -> Any:
        owner = self.find_owner(key)
        if owner is not None:
            return owner.bindings[key]
        raise KeyError(f"'{key}'")

    def __delitem__(self, key: str):
        if key not in self.bindings:
            raise KeyError(f"'{key}'")
        del self.bindings[key]

    def __contains__(self, key: Any) -> bool:
        """Checks if a key exists in this Scope or its prototypes."""
        if isinstance(key, str):
            return self.find_owner(key) is not None
        return False

    def find_owner(self, key: str) -> Optional['Scope']:
        """Finds the Scope in the lookup chain (self → parent) that owns key."""
        scope = self
        while scope is not None:
            if key in scope.bindings:
                return scope
            scope = scope._parent
        return None

    def get(self, key: str, default: Any = None) -> Any:
        owner = self.find_owner(key) if isinstance(key, str) else None
        if owner is not None:
            return owner.bindings[key]
        return default

    def setdefault(self, key: str, value: Any) -> Any:
        """Binds key locally unless this scope already holds it."""
        if key not in self.bindings:
            self[key] = value
        return self.bindings[key]

    @property
    def parent(self) -> Optional['Scope']:
        return self._parent

    def chain(self) -> List['Scope']:
        """Returns the lookup chain, innermost first."""
        out = []
        scope = self
        while scope is not None:
            out.append(scope)
            scope = scope._parent
        return out

    def keys(self) -> collections.abc.KeysView:
        """Returns a view of keys in the current scope only."""
        return self.bindings.keys()

    def release(self):
        """Drops all bindings and the parent link."""
        self.bindings.clear()
        self._parent = None

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        parent_id = f", parent=#{id(self._parent)}" if self._parent else ""
        return f"<Scope bindings=[{keys}]{parent_id}>"
