"""
testdispatch - test orchestration through ordered filter pipelines.

This package provides tools to:
- Resolve test cases and groups into an executable tree
- Run the tree through filters that transform tests before and results after execution
- Aggregate raw results into pass/fail/exception statistics
- Render a navigation menu of every discovered test
"""

__version__ = "0.1.0"
__author__ = "testdispatch Team"
