"""
Pytest configuration and shared fixtures
"""

import os
import shutil
import tempfile

import pytest

from kv_mapreduce import NotFound, StoredObject


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def stored_object():
    """A stored object with a plain value"""
    return StoredObject(b"a", b"1", "value1")


@pytest.fixture
def stored_list_object():
    """A stored object whose value is a list"""
    return StoredObject(b"a", b"1", ["value1"])


@pytest.fixture
def missing_object():
    """Placeholder for a failed lookup"""
    return NotFound(bkey=(b"a", b"2"))


@pytest.fixture
def bucket_keys():
    """Bucket/key pairs as handed to a key-listing reduce"""
    return [(b"b1", b"k1"), (b"b2", b"k2"), (b"b3", b"k3"),
            (b"b4", b"k4"), (b"b5", b"k5")]


@pytest.fixture
def phase_function_file(temp_dir):
    """Python file defining user phase functions"""
    filepath = os.path.join(temp_dir, 'user_phases.py')
    with open(filepath, 'w') as f:
        f.write(
            "def reduce_max(entries, arg):\n"
            "    return [max(entries)] if entries else []\n"
            "\n"
            "def map_upper(record, keydata, action):\n"
            "    return [record.value.upper()]\n"
            "\n"
            "NOT_A_FUNCTION = 42\n"
        )
    return filepath
