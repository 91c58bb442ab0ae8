"""
Exception hierarchy for waterflow.

Errors fall into three groups:

- ConfigurationError: the run cannot continue (no sources or consumers to
  build the super-source/super-sink reduction, an unknown pipe direction
  flag, a missing input file, an unknown search strategy).
- LookupMissError: an identifier could not be resolved. Plain ``get_*``
  lookups return None instead of raising; only the ``require_*`` helpers
  and explicit user requests (e.g. shutting down an unknown reservoir)
  raise this.
- MalformedRecordError: one bad input row. Parsers catch it, emit a
  RecordWarning and keep importing.

Running out of augmenting paths is not an error; it is how a solve ends.
"""


class WaterFlowError(Exception):
    """Base class for all waterflow errors."""


class ConfigurationError(WaterFlowError):
    """Fatal problem with the network or run configuration."""


class LookupMissError(WaterFlowError, KeyError):
    """An identifier is not present in the network."""

    def __init__(self, kind: str, identifier: object):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"Unknown {kind}: {identifier!r}")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return self.args[0]


class MalformedRecordError(WaterFlowError, ValueError):
    """A single input record could not be turned into a node or link."""

    def __init__(self, source: str, line_number: int, reason: str):
        self.source = source
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"{source}:{line_number}: {reason}")


class RecordWarning(UserWarning):
    """Issued when a malformed input record is skipped."""
