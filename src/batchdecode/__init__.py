"""
batchdecode: sharded batch decoding through an external recognizer.

Reads a batch file listing inputs (one per line, optionally followed by a
reference transcript), selects the slice assigned to this worker, and feeds
each selected input to a decoder engine in order.
"""

__version__ = "0.1.0"
