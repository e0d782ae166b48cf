"""Source status poller.

Repeatedly fetches a remote payment source until it reaches a terminal
status, applying retry and backoff to transient failures and reporting
each novel status to the caller.
"""

__version__ = "0.1.0"
