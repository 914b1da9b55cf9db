"""
Infrastructure layer containing I/O: HTTP transport, file sources,
configuration, logging and the upload session state machine.
"""
