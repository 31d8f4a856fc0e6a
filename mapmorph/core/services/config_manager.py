"""
config_manager.py
-----------------
Finds and reads the map's configuration files.

Transition tables and setting overrides live as YAML under the package's
config/ directory; JSON and Python (DEFAULT_CONFIG) files are accepted
too. A file can be named by full path, by basename, or by stem. Values
read from disk are merged over the caller's defaults, and '_notes' keys
are dropped so config files can carry comments as data.
"""

import os
import json
import importlib.util

import yaml

from mapmorph.core.debug.debug_logger import DebugLogger


DATA_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), "..", "..", "config"))

# Earlier directories win on basename clashes
SEARCH_DIRS = [
    DATA_ROOT,
    ".",
]

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json", ".py")

_FILE_INDEX = None


# ===========================================================
# Readers
# ===========================================================

def _read_yaml(path):
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return {} if data is None else data


def _read_json(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _read_python(path):
    """Execute a .py config and take its DEFAULT_CONFIG."""
    module_spec = importlib.util.spec_from_file_location("mapmorph_config_module", path)
    if module_spec is None or module_spec.loader is None:
        raise ImportError(f"cannot import {path}")
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return getattr(module, "DEFAULT_CONFIG", {})


_READERS = {
    ".yaml": ("YAML", _read_yaml),
    ".yml": ("YAML", _read_yaml),
    ".json": ("JSON", _read_json),
    ".py": ("Python", _read_python),
}

_READ_ERRORS = (OSError, ValueError, yaml.YAMLError, ImportError, SyntaxError)


# ===========================================================
# Public API
# ===========================================================

def load_config(filename, default_dict=None, strict=False):
    """
    Read a config file and merge it over default_dict.

    Any read failure (missing file, bad syntax, non-mapping document)
    returns a copy of the defaults with a warning, or raises
    FileNotFoundError when strict is set.
    """
    defaults = {} if default_dict is None else default_dict
    path = locate(filename)

    try:
        data = _read(path)
    except _READ_ERRORS as e:
        if strict:
            raise FileNotFoundError(f"Config not found or unreadable: {filename}") from e
        DebugLogger.warn(f"Failed to load {path}: {e} - using defaults", category="loading")
        return dict(defaults)

    return _merge_dicts(defaults, data)


def locate(filename):
    """Path for a config name; unknown names come back unchanged."""
    if os.path.isabs(filename):
        return filename

    index = get_index()
    name = filename.replace("\\", "/").lstrip("/")
    for candidate in (name, *(name + ext for ext in CONFIG_EXTENSIONS)):
        if candidate in index:
            return index[candidate]
    return filename


def get_index():
    """Basename -> path map, built on first use."""
    if _FILE_INDEX is None:
        build_file_index()
    return _FILE_INDEX


def get_indexed_files():
    return dict(get_index())


def build_file_index():
    """Index config files: DATA_ROOT recursively, other search dirs flat."""
    global _FILE_INDEX
    index = {}

    for directory in SEARCH_DIRS:
        if not os.path.isdir(directory):
            continue
        for path in _config_files(directory, recursive=(directory == DATA_ROOT)):
            index.setdefault(os.path.basename(path), path)

    _FILE_INDEX = index
    DebugLogger.init(f"Config index: {len(index)} files", category="loading")


def rebuild_file_index():
    """Drop the cached index and scan again (hot reload during development)."""
    global _FILE_INDEX
    _FILE_INDEX = None
    build_file_index()


# ===========================================================
# Internals
# ===========================================================

def _config_files(directory, recursive):
    if recursive:
        for root, _, files in os.walk(directory):
            for name in sorted(files):
                if name.endswith(CONFIG_EXTENSIONS):
                    yield os.path.join(root, name)
        return

    for name in sorted(os.listdir(directory)):
        path = os.path.join(directory, name)
        if name.endswith(CONFIG_EXTENSIONS) and os.path.isfile(path):
            yield path


def _read(path):
    ext = os.path.splitext(path)[1].lower()
    kind, reader = _READERS.get(ext, _READERS[".json"])
    data = reader(path)
    if not isinstance(data, dict):
        raise ValueError(f"top-level value must be a mapping, got {type(data).__name__}")
    DebugLogger.system(f"Loaded {os.path.basename(path)} ({kind})", category="loading")
    return data


def _merge_dicts(default, override):
    """Recursive merge returning a new dict; '_notes' keys are skipped."""
    merged = dict(default)
    for key, value in override.items():
        if key == "_notes":
            continue
        base = merged.get(key)
        if isinstance(value, dict) and isinstance(base, dict):
            merged[key] = _merge_dicts(base, value)
        else:
            merged[key] = value
    return merged
