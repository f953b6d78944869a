"""
fswatch: a recursive directory watcher.

Prints one line per create, remove and write event seen anywhere in a
directory tree, keeping the set of watched directories in step with the tree.
"""

__version__ = "0.1.0"
