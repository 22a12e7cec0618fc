"""Pluggable services used by the read path."""

from filereader.services.factory import ServiceFactory
from filereader.services.interfaces import BlockReader, ReadRequest, ReadResult

__all__ = ["BlockReader", "ReadRequest", "ReadResult", "ServiceFactory"]
