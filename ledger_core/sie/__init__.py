"""SIE 4 import package."""

from ledger_core.errors import MalformedSIE
from ledger_core.sie.parser import SIEParser, parse, parse_bytes, parse_file
from ledger_core.sie.tokenizer import Token, tokenize

__all__ = [
    "MalformedSIE",
    "SIEParser",
    "Token",
    "parse",
    "parse_bytes",
    "parse_file",
    "tokenize",
]
